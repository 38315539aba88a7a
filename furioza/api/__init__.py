"""HTTP surface: dependencies, error mapping, middleware and routers."""
