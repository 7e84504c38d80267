"""HTML rendering for the admin listing page."""
from __future__ import annotations

from html import escape
from typing import Iterable, List

from .models import Submission

_STYLE = """
:root{--bg:#0a0a0a;--fg:#e0e0e0;--accent:#00ff41;--dim:#666;--font:'JetBrains Mono','Fira Code','Courier New',monospace}
body{background:var(--bg);color:var(--fg);font-family:var(--font);margin:0;padding:2rem;line-height:1.6}
h1{color:var(--accent);font-size:1.2rem;font-weight:normal}
h1::before{content:'> '}
a{color:var(--dim)}
table{border-collapse:collapse;width:100%;margin-top:1rem;font-size:0.85rem}
th,td{border:1px solid #333;padding:0.5rem;text-align:left;vertical-align:top}
th{color:var(--accent);border-color:var(--accent)}
td{white-space:pre-wrap;max-width:400px}
button{background:none;border:1px solid var(--dim);color:var(--fg);font-family:var(--font);cursor:pointer}
.empty{color:var(--dim);margin-top:1rem}
.count{color:var(--dim);font-size:0.85rem}
"""

_SCRIPT = """
document.querySelectorAll('button[data-id]').forEach(function (button) {
  button.addEventListener('click', function () {
    if (!confirm('delete submission #' + button.dataset.id + '?')) return;
    fetch('/admin/waitlist/' + button.dataset.id, {method: 'DELETE', credentials: 'same-origin'})
      .then(function (response) { if (response.ok) button.closest('tr').remove(); });
  });
});
"""


def _join(values: Iterable[str]) -> str:
    return escape(", ".join(values))


def _render_row(row: Submission) -> str:
    created_at = row.created_at.strftime("%Y-%m-%d %H:%M:%S") if row.created_at else ""
    cells = [
        str(row.id),
        escape(row.email or ""),
        escape(row.pain),
        escape(row.pay),
        _join(row.target_platforms or []),
        _join(row.dev_os or []),
        str(row.max_agents or 0),
        escape(created_at),
        f'<button data-id="{row.id}">delete</button>',
    ]
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


def render_submissions(rows: List[Submission], identity: str) -> str:
    if rows:
        body_rows = "\n".join(_render_row(row) for row in rows)
        content = (
            "<table><thead><tr><th>#</th><th>email</th><th>pain</th><th>pay</th>"
            "<th>platforms</th><th>dev os</th><th>agents</th><th>time</th><th></th></tr></thead>"
            f"<tbody>\n{body_rows}\n</tbody></table>"
        )
    else:
        content = '<p class="empty"># no submissions yet</p>'

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="UTF-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1.0"/>
<title>waitlist submissions</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>waitlist submissions</h1>
<p class="count">{len(rows)} total &middot; signed in as {escape(identity)} &middot; <a href="/auth/logout">log out</a></p>
{content}
<script>{_SCRIPT}</script>
</body>
</html>"""
