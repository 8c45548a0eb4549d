"""
bundleforge test suite
======================

Test Modules
------------
- test_models.py: Tests for the Pydantic models
- test_catalog.py: Tests for the built-in feature catalogs
- test_rules.py: Tests for individual stop and mutation rules
- test_engine.py: Tests for toggle, retarget and the reducer
- test_synthesizer.py: Tests for derived packages, configs and names
- test_generator.py: Tests for rendering and writing projects
- test_config.py: Tests for bundleforge.toml settings
- test_cli.py: Tests for the command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=src/bundleforge

    # Skip the exhaustive toggle sequences
    pytest -m "not slow"

    # Run specific test class
    pytest tests/test_engine.py::TestToggle
"""
