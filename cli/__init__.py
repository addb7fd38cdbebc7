"""Command-line interface: ``envmon run`` drives the pipeline, the other
commands read averaged records back from the HTTP API."""
