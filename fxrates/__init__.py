"""Exchange rate service: directional rates, conversion, access control and throttling."""
