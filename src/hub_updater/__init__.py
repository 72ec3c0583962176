"""Local rebuild-and-redeploy tool for Claude Code Hub.

Pulls the source checkout, builds a local image, points the deployment's
compose file at it, restarts the stack and waits for the app service to
report healthy.
"""

__version__ = "0.1.0"
