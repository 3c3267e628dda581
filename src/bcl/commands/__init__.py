"""CLI plumbing shared by the root command: the AppContext."""
