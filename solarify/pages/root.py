"""HTML served at `/`."""

from html import escape

DOC_LINKS = (
    ("Swagger UI", "/docs"),
    ("ReDoc", "/redoc"),
    ("OpenAPI schema", "/openapi.json"),
)

QUICK_START = (
    ("Create an account", "POST /api/v1/auth/register"),
    ("Get a token", "POST /api/v1/auth/login"),
    ("Estimate production", "POST /api/v1/solar-calculator/calculate"),
    ("Find rate schedules", "GET /api/v1/utility-rates?action=search&zipCode=94105"),
    ("Service health", "GET /api/v1/health"),
)

_STYLE = """
body { font-family: system-ui, sans-serif; background: #0b1220; color: #e2e8f0; margin: 0; padding: 2rem 1rem; }
main { max-width: 600px; margin: 0 auto; }
h1 { color: #fbbf24; margin-bottom: 0.25rem; }
h2 { font-size: 0.8rem; text-transform: uppercase; letter-spacing: 0.08em; color: #64748b; }
section { background: #111a2e; border: 1px solid #1e293b; padding: 1rem 1.5rem; margin-bottom: 1rem; }
a { color: #fbbf24; }
code { font-family: ui-monospace, monospace; color: #cbd5e1; }
footer { color: #475569; font-size: 0.8rem; }
"""


def render_root_page(app_name: str, version: str) -> str:
    name = escape(app_name.capitalize())
    docs = "".join(f'<li><a href="{href}">{label}</a></li>' for label, href in DOC_LINKS)
    start = "".join(f"<li>{label}: <code>{escape(route)}</code></li>" for label, route in QUICK_START)
    return (
        '<!DOCTYPE html><html lang="en"><head><meta charset="UTF-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
        f"<title>{name}</title><style>{_STYLE}</style></head><body><main>"
        f"<h1>{name}</h1><p>Solar marketplace, billing and production API</p>"
        f"<section><h2>Documentation</h2><ul>{docs}</ul></section>"
        f"<section><h2>Quick start</h2><ul>{start}</ul></section>"
        f"<footer>v{escape(version)}</footer>"
        "</main></body></html>"
    )
