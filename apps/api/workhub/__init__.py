"""Work Hub: role-gated project pipeline API."""
