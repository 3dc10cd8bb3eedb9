"""ExamHub - test-taking backend."""
