"""
Text Analysis Frontend (FastAPI)

A small Python-based web frontend for an independently-built text scoring
service. The user types a text, the app has it scored for toxicity and for
"educational quality", and shows the history of past submissions as a table
and a line chart.

The scoring service (built and run separately) exposes:

- POST /toxicity     {"text": ...} -> {"text", "predicted_class", "score", "probabilities": {"Neutral", ...}}
- POST /edu-score    {"text": ...} -> {"text", "score", "int_score"}
- GET /logs                        -> [{"id", "text", "result_type", "score"}, ...]
- DELETE /clear-logs

The browser never talks to the scoring service directly. Every call goes
through this app's own JSON API (``/api/...``), which keeps the page free of
CORS issues and lets us measure latency and count failures.

The UI:
- One page, inline CSS, vanilla JavaScript, no external JS libraries.
- The chart is drawn as inline SVG.
- A contract check card verifies that the service answers in the expected shape.
- Operational metrics (counts + latency) for calls to the scoring service.

Run the application:
- uvicorn text_analysis.app:app --reload --port 7860
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from text_analysis.config import ServiceConfig
from text_analysis.rendering import snapshot
from text_analysis.scoring import Metrics, ScoringClient
from text_analysis.selftest import run_selftest
from text_analysis.view import ClientView


# -----------------------------
# Configuration + state
# -----------------------------

config = ServiceConfig.from_env()
metrics = Metrics(config=config)
view = ClientView(ScoringClient(config, metrics))

app = FastAPI(title="Text Analysis with Visualization")


class AnalyzeRequest(BaseModel):
    """Request payload for an analysis.

    Parameters
    ----------
    text : str
        Text to score. Empty text is forwarded to the service as-is.
    """

    text: str = ""


# -----------------------------
# Web UI (single-file HTML with inline CSS + vanilla JS)
# -----------------------------

@app.get("/", response_class=HTMLResponse)
async def index() -> str:
    """Render the single-page UI."""
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>Text Analysis with Visualization</title>
  <style>
    :root {{
      --accent: #4b9cd3;
      --bg: #f4f7fc;
      --fg: #111111;
      --muted: #666666;
      --border: #dddddd;
      --bad: #d00000;
      --card: #ffffff;
    }}
    body {{
      margin: 0;
      font-family: Arial, sans-serif;
      background: var(--bg);
      color: var(--fg);
      line-height: 1.35;
    }}
    main {{
      max-width: 1000px;
      margin: 0 auto;
      padding: 30px 16px 40px 16px;
    }}
    h1 {{
      text-align: center;
      color: var(--accent);
      margin-bottom: 30px;
    }}
    h2 {{
      color: var(--accent);
      margin: 0 0 10px 0;
      font-size: 18px;
    }}
    .card {{
      background: var(--card);
      border-radius: 10px;
      padding: 20px;
      box-shadow: 0px 8px 16px rgba(0, 0, 0, 0.1);
      margin-bottom: 30px;
    }}
    textarea {{
      width: 100%;
      box-sizing: border-box;
      height: 120px;
      margin-bottom: 15px;
      padding: 15px;
      border-radius: 10px;
      border: 1px solid var(--border);
      font-size: 16px;
      font-family: Arial, sans-serif;
    }}
    .row {{
      text-align: center;
    }}
    .btn {{
      background: var(--accent);
      color: white;
      border: none;
      border-radius: 8px;
      padding: 10px 20px;
      margin: 0 6px;
      font-size: 16px;
      cursor: pointer;
    }}
    .btn:disabled {{
      opacity: 0.6;
      cursor: not-allowed;
    }}
    .btn.danger {{
      background: #e74c3c;
    }}
    #error {{
      color: var(--bad);
      text-align: center;
      margin-top: 10px;
      font-size: 16px;
    }}
    table {{
      width: 100%;
      border-collapse: collapse;
    }}
    thead {{
      background: var(--accent);
      color: white;
    }}
    th, td {{
      padding: 8px;
      text-align: left;
    }}
    tbody tr {{
      border-bottom: 1px solid var(--border);
    }}
    .small {{
      font-size: 12px;
      color: var(--muted);
    }}
    pre {{
      white-space: pre-wrap;
      word-break: break-word;
      background: white;
      border: 1px solid var(--border);
      border-radius: 10px;
      padding: 10px;
      max-height: 320px;
      overflow: auto;
      font-size: 12.5px;
    }}
    .kpi {{
      display: grid;
      grid-template-columns: repeat(3, minmax(0, 1fr));
      gap: 8px;
      margin-top: 10px;
    }}
    .kpi .box {{
      border: 1px solid var(--border);
      border-radius: 10px;
      padding: 10px;
    }}
    .kpi .label {{
      font-size: 11px;
      color: var(--muted);
    }}
    .kpi .value {{
      font-size: 16px;
      font-weight: 700;
      margin-top: 4px;
    }}
  </style>
</head>
<body>
  <main>
    <h1>Text Analysis with Visualization</h1>

    <section class="card">
      <textarea id="text" placeholder="Enter text to analyze"></textarea>
      <div class="row">
        <button id="analyzeBtn" class="btn" type="button">Analyze Text</button>
        <button id="clearBtn" class="btn danger" type="button">Clear Logs</button>
      </div>
      <div id="error" hidden></div>
    </section>

    <section class="card" id="toxPanel" hidden>
      <h2>Toxicity Result</h2>
      <div class="fields"></div>
    </section>

    <section class="card" id="eduPanel" hidden>
      <h2>Education Score Result</h2>
      <div class="fields"></div>
    </section>

    <section class="card">
      <h2 style="text-align:center;">Score Visualization</h2>
      <svg id="chart" viewBox="0 0 800 340" width="100%" role="img" aria-label="Toxicity and Education Scores Over Logs"></svg>
    </section>

    <section class="card">
      <h2 style="text-align:center;">Log History</h2>
      <table>
        <thead><tr><th>ID</th><th>Text</th><th>Result Type</th><th>Score</th></tr></thead>
        <tbody id="logRows"></tbody>
      </table>
    </section>

    <section class="card">
      <h2>Operational metrics</h2>
      <div class="small">Calls from this frontend to the scoring service at <b>{config.base_url}</b> (reset on restart).</div>
      <div class="kpi">
        <div class="box"><div class="label">Total requests</div><div class="value" id="m_total">—</div></div>
        <div class="box"><div class="label">Successful</div><div class="value" id="m_ok">—</div></div>
        <div class="box"><div class="label">Failed</div><div class="value" id="m_fail">—</div></div>
        <div class="box"><div class="label">Avg latency (ms)</div><div class="value" id="m_avg">—</div></div>
        <div class="box"><div class="label">Last latency (ms)</div><div class="value" id="m_last">—</div></div>
        <div class="box"><div class="label">Last error</div><div class="value" id="m_err" style="font-size:12px;">—</div></div>
      </div>

      <h2 style="margin-top:14px;">Contract check</h2>
      <div class="small">Sends a few sample texts to both scoring endpoints and checks the JSON shape of every answer. This adds entries to the log history.</div>
      <div class="row" style="text-align:left; margin-top:10px;">
        <button id="selftestBtn" class="btn" type="button" style="margin:0;">Run contract check</button>
        <span class="small">Status: <b id="selftestStatus">not run</b></span>
      </div>
      <pre id="selftestOut">Contract check results will appear here.</pre>
    </section>
  </main>

<script>
(function() {{
  const SVG_NS = "http://www.w3.org/2000/svg";
  const COLORS = {{
    "Toxicity Score": ["rgba(255, 99, 132, 1)", "rgba(255, 99, 132, 0.2)"],
    "Education Score": ["rgba(54, 162, 235, 1)", "rgba(54, 162, 235, 0.2)"]
  }};
  const textEl = document.getElementById("text");
  const analyzeBtn = document.getElementById("analyzeBtn");
  const clearBtn = document.getElementById("clearBtn");
  const errorEl = document.getElementById("error");
  const chartEl = document.getElementById("chart");

  function fmtMs(x) {{
    if (x === null || x === undefined) return "—";
    return Math.round(x * 10) / 10;
  }}

  function renderPanel(id, rows) {{
    const panel = document.getElementById(id);
    const fields = panel.querySelector(".fields");
    fields.textContent = "";
    if (!rows) {{
      panel.hidden = true;
      return;
    }}
    for (const [name, value] of rows) {{
      const p = document.createElement("p");
      const b = document.createElement("strong");
      b.textContent = name + ":";
      p.appendChild(b);
      p.appendChild(document.createTextNode(" " + value));
      fields.appendChild(p);
    }}
    panel.hidden = false;
  }}

  function svg(tag, attrs, text) {{
    const el = document.createElementNS(SVG_NS, tag);
    for (const k in attrs) el.setAttribute(k, attrs[k]);
    if (text !== undefined) el.textContent = text;
    chartEl.appendChild(el);
    return el;
  }}

  function renderChart(chart) {{
    chartEl.textContent = "";
    const W = 800, H = 340, L = 50, R = 20, T = 50, B = 50;
    const plotW = W - L - R, plotH = H - T - B;
    const labels = chart.labels;
    let yMax = 0;
    for (const ds of chart.datasets) for (const v of ds.data) yMax = Math.max(yMax, v);
    if (yMax <= 0) yMax = 1;
    const x = i => labels.length <= 1 ? L + plotW / 2 : L + i * plotW / (labels.length - 1);
    const y = v => T + plotH - (v / yMax) * plotH;

    svg("text", {{x: W / 2, y: 20, "text-anchor": "middle", "font-size": 15, "font-weight": "bold"}},
        "Toxicity and Education Scores Over Logs");
    svg("line", {{x1: L, y1: T + plotH, x2: L + plotW, y2: T + plotH, stroke: "#999"}});
    svg("line", {{x1: L, y1: T, x2: L, y2: T + plotH, stroke: "#999"}});
    for (let k = 0; k <= 4; k++) {{
      const v = yMax * k / 4;
      svg("text", {{x: L - 6, y: y(v) + 4, "text-anchor": "end", "font-size": 11}}, String(Math.round(v * 100) / 100));
    }}
    const step = Math.max(1, Math.ceil(labels.length / 12));
    labels.forEach((lab, i) => {{
      if (i % step === 0) svg("text", {{x: x(i), y: T + plotH + 16, "text-anchor": "middle", "font-size": 11}}, lab);
    }});
    svg("text", {{x: L + plotW / 2, y: H - 8, "text-anchor": "middle", "font-size": 12}}, "Log ID");

    chart.datasets.forEach((ds, n) => {{
      const [line, fill] = COLORS[ds.label] || ["#333", "rgba(0,0,0,0.1)"];
      // Point i sits under label i, whichever log entry that label names.
      const pts = ds.data.map((v, i) => x(i) + "," + y(v));
      if (pts.length > 0) {{
        const area = [x(0) + "," + y(0)].concat(pts, [x(ds.data.length - 1) + "," + y(0)]);
        svg("polygon", {{points: area.join(" "), fill: fill, stroke: "none"}});
        svg("polyline", {{points: pts.join(" "), fill: "none", stroke: line, "stroke-width": 2}});
        ds.data.forEach((v, i) => svg("circle", {{cx: x(i), cy: y(v), r: 3, fill: line}}));
      }}
      svg("rect", {{x: W / 2 - 150 + n * 160, y: 30, width: 12, height: 12, fill: line}});
      svg("text", {{x: W / 2 - 134 + n * 160, y: 40, "font-size": 12}}, ds.label);
    }});
  }}

  function renderTable(rows) {{
    const body = document.getElementById("logRows");
    body.textContent = "";
    for (const row of rows) {{
      const tr = document.createElement("tr");
      for (const col of ["ID", "Text", "Result Type", "Score"]) {{
        const td = document.createElement("td");
        td.textContent = row[col];
        tr.appendChild(td);
      }}
      body.appendChild(tr);
    }}
  }}

  function render(state) {{
    if (state.error) {{
      errorEl.textContent = state.error;
      errorEl.hidden = false;
    }} else {{
      errorEl.textContent = "";
      errorEl.hidden = true;
    }}
    renderPanel("toxPanel", state.toxicity_panel);
    renderPanel("eduPanel", state.edu_score_panel);
    renderChart(state.chart);
    renderTable(state.table);
  }}

  async function call(method, url, body) {{
    const opts = {{ method: method }};
    if (body !== undefined) {{
      opts.headers = {{ "Content-Type": "application/json" }};
      opts.body = JSON.stringify(body);
    }}
    const r = await fetch(url, opts);
    const data = await r.json();
    if (r.ok) render(data);
    return data;
  }}

  async function refreshMetrics() {{
    try {{
      const r = await fetch("/api/metrics");
      const m = await r.json();
      document.getElementById("m_total").textContent = m.total_requests ?? "—";
      document.getElementById("m_ok").textContent = m.success_requests ?? "—";
      document.getElementById("m_fail").textContent = m.failed_requests ?? "—";
      document.getElementById("m_avg").textContent = fmtMs(m.avg_latency_ms);
      document.getElementById("m_last").textContent = fmtMs(m.last_latency_ms);
      document.getElementById("m_err").textContent = m.last_error ? m.last_error.replace(/\\s+/g, " ").slice(0, 140) : "—";
    }} catch (e) {{
      console.error("Failed to fetch metrics:", e);
    }}
  }}

  analyzeBtn.addEventListener("click", async () => {{
    analyzeBtn.disabled = true;
    try {{
      await call("POST", "/api/analyze", {{ text: textEl.value }});
    }} catch (e) {{
      console.error("Analyze request failed:", e);
    }} finally {{
      analyzeBtn.disabled = false;
      refreshMetrics();
    }}
  }});

  clearBtn.addEventListener("click", async () => {{
    try {{
      await call("DELETE", "/api/logs");
    }} catch (e) {{
      console.error("Failed to clear logs:", e);
    }} finally {{
      refreshMetrics();
    }}
  }});

  document.getElementById("selftestBtn").addEventListener("click", async () => {{
    const btn = document.getElementById("selftestBtn");
    const status = document.getElementById("selftestStatus");
    const out = document.getElementById("selftestOut");
    btn.disabled = true;
    status.textContent = "running...";
    out.textContent = "Running contract check...";
    try {{
      const r = await fetch("/api/selftest", {{ method: "POST" }});
      const data = await r.json();
      const lines = [`Service URL: ${{data.service_url}}`, `Passed: ${{data.passed}} / ${{data.total}}`, ""];
      for (const it of data.results) {{
        lines.push(`[${{it.ok ? "OK" : "FAIL"}}] ${{it.name}}`);
        if (it.latency_ms !== null) lines.push(`  latency_ms: ${{fmtMs(it.latency_ms)}}`);
        for (const p of it.problems) lines.push("  " + String(p).split("\\n").join("\\n  "));
      }}
      out.textContent = lines.join("\\n");
      status.textContent = data.passed === data.total ? "passed" : "failed";
    }} catch (e) {{
      out.textContent = "Contract check failed to run.\\n\\n" + String(e);
      status.textContent = "error";
    }} finally {{
      btn.disabled = false;
      refreshMetrics();
    }}
  }});

  // Initial load: fetch the log history once.
  fetch("/api/state").then(r => r.json()).then(state => {{ textEl.value = state.text; }});
  call("POST", "/api/logs/refresh").catch(e => console.error("Failed to fetch logs:", e)).finally(refreshMetrics);
  setInterval(refreshMetrics, 2000);
}})();
</script>
</body>
</html>
"""


# -----------------------------
# API routes used by the UI
# -----------------------------

@app.get("/api/state")
async def api_state() -> Dict[str, Any]:
    """Return the current view state, ready to render."""
    return snapshot(view)


@app.post("/api/analyze")
async def api_analyze(req: AnalyzeRequest) -> JSONResponse:
    """Score the text with both endpoints and refresh the logs."""
    accepted = await view.analyze(req.text)
    if not accepted:
        return JSONResponse(
            status_code=409,
            content={"error": "An analysis is already running. Wait for it to finish and try again."},
        )
    return JSONResponse(content=snapshot(view))


@app.post("/api/logs/refresh")
async def api_refresh_logs() -> Dict[str, Any]:
    """Fetch the log history from the scoring service."""
    await view.refresh_logs()
    return snapshot(view)


@app.delete("/api/logs")
async def api_clear_logs() -> Dict[str, Any]:
    """Delete the log history on the scoring service."""
    await view.clear_logs()
    return snapshot(view)


@app.get("/api/metrics")
async def api_metrics() -> Dict[str, Any]:
    """Return a snapshot of operational metrics."""
    return await view.client.metrics.snapshot()


@app.post("/api/selftest")
async def api_selftest() -> Dict[str, Any]:
    """Run the contract check and return results as JSON."""
    return await run_selftest(view.client)


# -----------------------------
# Local dev entrypoint (optional)
# -----------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=7860)
