"""TenderWatch test suite."""
