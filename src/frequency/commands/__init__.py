"""Shell command handlers: (ctx, args) -> (ctx, should_continue)."""
