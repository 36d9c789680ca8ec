"""Schema Architect: schema modelling and code generation toolkit."""
