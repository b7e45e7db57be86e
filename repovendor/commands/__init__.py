"""Click commands for repovendor, one module per subcommand."""
