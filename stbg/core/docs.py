"""
@file docs.py
@brief Documentation handler for the application root
@details
Serves the HTML landing page for the API. The criteria table is rendered
from the live criterion registry.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

from html import escape

from stbg.services.criteria import CRITERIA


def _criteria_rows() -> str:
    rows = []
    for criterion in CRITERIA:
        cap = "as is" if criterion.cap is None else f"0 - {criterion.cap:g}"
        note = "" if criterion.implemented else " <em>(pending definition)</em>"
        rows.append(
            f"<tr><td><code>{escape(criterion.name)}</code></td>"
            f"<td>{escape(criterion.description)}{note}</td><td>{cap}</td></tr>"
        )
    return "\n".join(rows)


def get_root_documentation() -> str:
    """
    @brief Generate the HTML content for the root documentation page

    @details
    Returns an HTML page describing:
    - Service overview
    - Prioritization criteria and their score ranges
    - API usage references

    @return HTML string
    """
    html_content = f"""<!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>STBG Project Prioritization API</title>
        <style>
            * {{ margin: 0; padding: 0; box-sizing: border-box; }}
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                line-height: 1.6;
                color: #333;
                background: #eef2f7;
                padding: 20px;
            }}
            .container {{ max-width: 900px; margin: 0 auto; background: white; border-radius: 12px; overflow: hidden; }}
            .header {{ background: #1f4e79; color: white; padding: 32px; text-align: center; }}
            .content {{ padding: 32px; }}
            h2 {{ color: #1f4e79; margin-top: 24px; border-bottom: 2px solid #1f4e79; padding-bottom: 8px; }}
            table {{ width: 100%; border-collapse: collapse; margin-top: 12px; }}
            td, th {{ border-bottom: 1px solid #eee; padding: 6px; text-align: left; }}
            ul {{ margin: 12px 0 0 20px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>STBG Project Prioritization API</h1>
                <p>Benefit-cost ranking of candidate highway projects</p>
            </div>
            <div class="content">
                <h2>Overview</h2>
                <p>Upload project corridors and reference layers as GeoJSON. Each project is
                scored on safety, congestion, access, environmental and economic criteria,
                the scores are summed and divided by project cost, and projects are ranked
                by the resulting benefit-cost ratio (BCR).</p>

                <h2>Criteria</h2>
                <table>
                    <tr><th>Field</th><th>Criterion</th><th>Score range</th></tr>
                    {_criteria_rows()}
                </table>

                <h2>API Access</h2>
                <ul>
                    <li><code>POST /analyze</code> - Rank projects from uploaded datasets</li>
                    <li><code>GET /criteria</code> - List prioritization criteria</li>
                    <li><code>GET /crs</code> - Supported coordinate systems</li>
                    <li><code>POST /reproject</code> - Reproject a GeoJSON dataset</li>
                    <li><code>GET /health</code> - Service health</li>
                </ul>
            </div>
        </div>
    </body>
    </html>
    """
    return html_content
