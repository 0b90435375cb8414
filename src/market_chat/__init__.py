"""Market chat: conversational news and markets assistant with live quote context."""
