"""
bootline Test Suite
===================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (no filesystem, no process hooks)
- tests/integration/   : Tests touching temporary files, packages or hooks
- tests/fixtures/      : Listener classes and sample applications

Testing Philosophy
------------------
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
