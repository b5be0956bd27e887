# Shared utilities package: configuration, connections, observability
