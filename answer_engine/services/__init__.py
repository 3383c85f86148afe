"""Service layer: storage backends, remote data client, session registry."""
