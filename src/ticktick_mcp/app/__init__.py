"""Runtime building blocks: settings, upstream client, cache, registry and dispatcher."""
