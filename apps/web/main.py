"""FastAPI web application for bumpall.

Runs the bump planning pipeline on pasted content: a package.json plus the
output of ``npm outdated --json`` (or ``--parseable``) from the same project.
npm itself is never invoked on the server.
"""

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from bumpall.detect import identify
from bumpall.errors import BumpallError
from bumpall.lockfile import parse_package_lock
from bumpall.models import ResolutionResult
from bumpall.npm import parse_outdated
from bumpall.parse_node import parse_package_json
from bumpall.resolve_node import NodeResolver
from bumpall.rewrite import build_report
from bumpall.versions import MODES

app = FastAPI(
    title="bumpall",
    description="Preview npm dependency bumps in package.json",
    version="0.1.0",
)


class PlanRequest(BaseModel):
    """Request model for planning a bump."""
    manifest: str
    outdated: str
    lockfile: Optional[str] = None
    mode: str = "minor"
    include: Optional[str] = None
    project_name: Optional[str] = None


class PlanResponse(BaseModel):
    """Response model for a planned bump."""
    original_content: str
    updated_content: str
    diff: str
    changes: list[dict]
    skipped: list[dict]
    has_changes: bool


@app.get("/", response_class=HTMLResponse)
async def home():
    """Serve the main application page."""
    return get_index_html()


@app.post("/api/plan", response_model=PlanResponse)
async def plan_bump(request: PlanRequest):
    """Plan dependency bumps from pasted package.json and npm outdated output."""
    try:
        content = request.manifest
        if not content.strip():
            raise HTTPException(status_code=400, detail="No package.json content provided")

        kind = identify(content)
        if kind in ("lockfile", "outdated"):
            raise HTTPException(status_code=400, detail=f"Expected package.json, got {kind} content")

        if request.mode not in MODES:
            raise HTTPException(status_code=400, detail=f"Unknown mode: {request.mode}")

        manifest = parse_package_json(content)
        outdated = parse_outdated(request.outdated)
        installed = parse_package_lock(request.lockfile) if request.lockfile else {}

        resolver = NodeResolver(
            mode=request.mode,
            include=request.include,
            project_name=request.project_name,
        )
        results = resolver.resolve_entries(manifest, outdated, installed)
        report = build_report("package.json", content, results)

        return PlanResponse(
            original_content=content,
            updated_content=report.updated_content,
            diff=report.diff,
            changes=[_describe(result) for result in report.changes],
            skipped=[_describe(result) for result in results if result.skipped],
            has_changes=bool(report.changes),
        )

    except HTTPException:
        # Re-raise HTTP exceptions (don't convert to 500)
        raise
    except BumpallError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error planning bump: {str(e)}")


@app.post("/api/upload", response_model=PlanResponse)
async def upload_file(
    file: UploadFile = File(...),
    outdated: str = Form(...),
    mode: str = Form("minor"),
    include: Optional[str] = Form(None),
):
    """Upload a package.json and plan its bumps."""
    try:
        if not file.filename:
            raise HTTPException(status_code=400, detail="No file uploaded")

        content = await file.read()
        request = PlanRequest(
            manifest=content.decode("utf-8"),
            outdated=outdated,
            mode=mode,
            include=include,
        )
        return await plan_bump(request)

    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be valid UTF-8 text")


@app.post("/api/download")
async def download_updated_file(request: PlanRequest):
    """Return the rewritten package.json as an attachment."""
    response = await plan_bump(request)

    if not response.has_changes:
        raise HTTPException(status_code=400, detail="No changes to download")

    return Response(
        content=response.updated_content,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="package.json"'},
    )


def _describe(result: ResolutionResult) -> dict:
    return {
        "name": result.entry.name,
        "section": result.entry.section,
        "current_version": result.current_version,
        "new_version": result.chosen_version,
        "current_spec": result.entry.spec,
        "new_spec": result.new_spec,
        "reason": result.reason,
        "semver_delta": result.semver_delta,
    }


def get_index_html() -> str:
    """Return the main HTML page."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>bumpall - npm Dependency Bumper</title>
        <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
        <style>
            textarea { font-family: 'Courier New', monospace; }
            .diff-added { background-color: #d4edda; color: #155724; }
            .diff-removed { background-color: #f8d7da; color: #721c24; }
        </style>
    </head>
    <body>
        <div class="container py-4">
            <div class="text-center mb-4">
                <h1 class="display-5 fw-bold text-primary">bumpall</h1>
                <p class="lead text-muted">Preview npm dependency bumps in package.json</p>
            </div>

            <div class="row">
                <div class="col-lg-6 mb-3">
                    <label for="manifestInput" class="form-label">package.json</label>
                    <textarea id="manifestInput" class="form-control" rows="14"></textarea>
                </div>
                <div class="col-lg-6 mb-3">
                    <label for="outdatedInput" class="form-label">npm outdated --json</label>
                    <textarea id="outdatedInput" class="form-control" rows="14"></textarea>
                </div>
            </div>

            <div class="row mb-3">
                <div class="col-md-4">
                    <select id="mode" class="form-select">
                        <option value="patch">Patch only</option>
                        <option value="minor" selected>Minor (default)</option>
                        <option value="latest">Latest (includes major)</option>
                    </select>
                </div>
                <div class="col-md-4">
                    <input type="text" id="include" class="form-control" placeholder="Include glob, e.g. @types/*" />
                </div>
                <div class="col-md-4">
                    <button id="planBtn" class="btn btn-primary w-100">Plan bump</button>
                </div>
            </div>

            <div id="summary"></div>
            <pre id="diffOutput" class="border rounded p-3 d-none"></pre>
        </div>

        <script>
            const summary = document.getElementById('summary');
            const diffOutput = document.getElementById('diffOutput');

            function escapeHtml(text) {
                return text.replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;');
            }

            function renderDiff(diff) {
                diffOutput.innerHTML = diff.split('\\n').map(line => {
                    if (line.startsWith('+') && !line.startsWith('+++')) {
                        return `<span class="diff-added">${escapeHtml(line)}</span>`;
                    }
                    if (line.startsWith('-') && !line.startsWith('---')) {
                        return `<span class="diff-removed">${escapeHtml(line)}</span>`;
                    }
                    return escapeHtml(line);
                }).join('\\n');
                diffOutput.classList.remove('d-none');
            }

            document.getElementById('planBtn').addEventListener('click', async () => {
                const response = await fetch('/api/plan', {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify({
                        manifest: document.getElementById('manifestInput').value,
                        outdated: document.getElementById('outdatedInput').value,
                        mode: document.getElementById('mode').value,
                        include: document.getElementById('include').value || null
                    })
                });
                const data = await response.json();

                if (!response.ok) {
                    summary.innerHTML = `<div class="alert alert-danger">${escapeHtml(String(data.detail))}</div>`;
                    diffOutput.classList.add('d-none');
                    return;
                }

                if (!data.has_changes) {
                    summary.innerHTML = '<div class="alert alert-success">No outdated packages found</div>';
                    diffOutput.classList.add('d-none');
                    return;
                }

                summary.innerHTML = `<div class="alert alert-info">${data.changes.length} package(s) to bump, ${data.skipped.length} skipped</div>`;
                renderDiff(data.diff);
            });
        </script>
    </body>
    </html>
    """


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
