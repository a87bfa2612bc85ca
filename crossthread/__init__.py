"""Desktop sample showing where code resumes after asynchronous waits."""
