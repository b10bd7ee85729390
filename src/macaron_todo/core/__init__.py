"""Task model, snapshot transitions and the TodoStore."""
