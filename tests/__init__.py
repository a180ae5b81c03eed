"""
Leaderboard Test Suite
======================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with mocks (no file access)
- tests/integration/   : Tests against a real SQLite file and the HTTP app

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test validation and ranking logic
- Integration tests: Slower, test real pool/file/transport interactions
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
