"""AppleBites valuation backend."""
