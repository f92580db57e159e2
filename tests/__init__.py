"""FlowState Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - scoring/: Score engine, idle detector, activity accumulator
  - sessions/: Session tracker and break predictor
  - storage/: History store and export
  - config/: Configuration loading and logging setup
- integration/: Monitor pipeline and CLI workflows

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/sessions/
"""
