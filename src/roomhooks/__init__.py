"""Subscribe chat rooms to GitHub repository events through shared webhooks."""
