"""Shared test fixtures for the tidemark test suite.

Runner mocks (tests/fixtures/runners.py)
    make_result, timed_out_result, not_found_result: CommandResult factories.
    ScriptedRunner: fake runner answering by argument prefix.
    mock_runner: AsyncMock CommandRunner returning success by default.

Real repositories (tests/fixtures/repos.py)
    git_repo: git checkout with one commit on ``main``.
    git_repo_with_remote: ``(repo, bare_remote)`` with ``main`` pushed.
    darcs_tree: directory laid out like a darcs repository (``_darcs``
        marker, nested files, an executable script, and symlinks); needs no
        darcs executable.
"""
