"""TenderWatch command line interface."""
