"""Multi-agent code review pipeline for GitHub pull requests and GitLab merge requests."""
