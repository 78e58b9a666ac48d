"""husgit — orchestrate GitLab merge requests across an environment chain."""

__version__ = "0.1.0"
