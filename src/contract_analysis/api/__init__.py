"""HTTP boundary for the Contract Analysis Agent."""
