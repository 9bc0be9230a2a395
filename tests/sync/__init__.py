"""
Test suite for the type synchronization engine.

This package contains tests for all synchronization components:
- Gate evaluation and rule precedence
- Remote type download and per-remote failure isolation
- Local type compilation, serialization and specifier rewriting
- ContinuousSyncScheduler arming and firing
- DirectoryBuildHost build-completion detection
- ModuleFederationTypesSync end-to-end lifecycle
"""
