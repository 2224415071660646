"""Chat-completion plumbing: request building, HTTP transport, reply parsing."""
