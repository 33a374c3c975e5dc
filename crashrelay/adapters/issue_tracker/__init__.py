"""Issue tracker adapters that keep remote issues in step with crash status."""
