"""launch-scout — browser-driven listing extraction and link replay."""
