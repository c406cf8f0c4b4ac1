"""Starter .differ.toml template."""

DEFAULT_TOML = """\
# differ configuration
version = "1.0"

[relay]
enabled = true
host = "127.0.0.1"        # agents connect to http://host:port/mcp
port = 3100
# path = "/mcp"

[output]
format = "terminal"       # terminal | json
show_summary = true

[log]
level = "warning"         # debug | info | warning | error

[git]
timeout = 30              # seconds per git call
"""
