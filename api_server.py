# ========================
# api_server.py
# ========================

"""
FastAPI Server for the Bike Trip Pipeline

Provides REST API endpoints for triggering pipeline runs over the configured
trip exports and fetching the resulting summary tables.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from fastapi import FastAPI, HTTPException, BackgroundTasks, Query
from fastapi.responses import FileResponse
import uvicorn

from src.trip_pipeline import TripPipeline
from src.trip_pipeline.storage import format_value
from src.trip_pipeline.views import VIEW_NAMES
from src.utils.config import Config
from src.utils.logging_setup import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Bike Trip Pipeline API",
    description="Harmonize 2019/2020 trip exports and serve rider-class summaries",
    version="1.0.0"
)

config = Config()

# Global state for tracking jobs
job_status: Dict[str, Dict[str, Any]] = {}

JOB_NOT_FOUND_MSG = "Job not found"
JOB_NOT_COMPLETED_MSG = "Job not completed yet"

def run_pipeline_job(job_id: str, error_policy: Optional[str]) -> None:
    """Run the pipeline for a queued job and record the outcome."""
    job = job_status[job_id]
    try:
        logger.info(f"Starting pipeline job {job_id}")
        job['status'] = 'processing'
        job['started_at'] = datetime.now().isoformat()

        pipeline = TripPipeline(output_dir=job['output_dir'], config=config, error_policy=error_policy)
        result = pipeline.run_files()

        job['tables'] = {
            name: [{k: format_value(v) for k, v in row.items()} for row in table.to_dicts()]
            for name, table in result.tables.items()
        }
        job['saved_files'] = result.saved_files
        job['statistics'] = result.statistics
        job['status'] = 'completed'
        job['completed_at'] = datetime.now().isoformat()
        logger.info(f"Pipeline job {job_id} completed successfully")

    except Exception as e:
        logger.error(f"Pipeline job {job_id} failed: {e}")
        job['status'] = 'failed'
        job['error'] = str(e)
        job['failed_at'] = datetime.now().isoformat()

def _get_job(job_id: str) -> Dict[str, Any]:
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)
    return job_status[job_id]

def _get_completed_job(job_id: str) -> Dict[str, Any]:
    job = _get_job(job_id)
    if job['status'] != 'completed':
        raise HTTPException(status_code=400, detail=JOB_NOT_COMPLETED_MSG)
    return job

@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Bike Trip Pipeline API",
        "version": "1.0.0",
        "endpoints": {
            "runs": "POST /runs - Run the pipeline over the configured exports",
            "status": "GET /runs/{job_id} - Check job status",
            "table": "GET /runs/{job_id}/tables/{view} - Summary table rows",
            "download": "GET /runs/{job_id}/download/{view} - Summary table CSV",
            "health": "GET /health - Health check",
        },
        "views": list(VIEW_NAMES),
    }

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "active_jobs": len([j for j in job_status.values() if j['status'] == 'processing'])
    }

@app.post("/runs")
async def start_run(
    background_tasks: BackgroundTasks,
    error_policy: Optional[str] = Query(None, description="skip or strict; defaults to configuration")
):
    """
    Queue a pipeline run over the configured input files.

    Returns:
        dict: Job ID and status information
    """
    if error_policy is not None and error_policy.lower() not in ('skip', 'strict'):
        raise HTTPException(status_code=400, detail="error_policy must be 'skip' or 'strict'")

    missing = [path for path in config.get_input_batches().values() if not Path(path).exists()]
    if missing:
        raise HTTPException(status_code=400, detail=f"Input files not found: {missing}")

    job_id = str(uuid.uuid4())
    output_dir = Path(config.DEFAULT_OUTPUT_DIR) / job_id
    job_status[job_id] = {
        'job_id': job_id,
        'status': 'queued',
        'created_at': datetime.now().isoformat(),
        'input_files': config.get_input_batches(),
        'output_dir': str(output_dir),
        'error_policy': error_policy or config.ERROR_POLICY,
    }

    background_tasks.add_task(run_pipeline_job, job_id, error_policy)
    logger.info(f"Queued pipeline job {job_id}")

    return {
        "job_id": job_id,
        "status": "queued",
        "message": "Use /runs/{job_id} to check progress"
    }

@app.get("/runs")
async def list_runs(
    status: Optional[str] = Query(None, description="Filter by status: queued, processing, completed, failed")
):
    """List pipeline jobs, newest first."""
    jobs = [
        {k: job[k] for k in ('job_id', 'status', 'created_at')}
        for job in job_status.values()
        if status is None or job['status'] == status
    ]
    jobs.sort(key=lambda j: j['created_at'], reverse=True)
    return {"jobs": jobs, "total": len(jobs)}

@app.get("/runs/{job_id}")
async def get_run_status(job_id: str):
    """Get the status and statistics of a pipeline job."""
    job = _get_job(job_id)
    return {k: v for k, v in job.items() if k != 'tables'}

@app.get("/runs/{job_id}/tables/{view}")
async def get_run_table(job_id: str, view: str):
    """Return the rows of one summary table."""
    job = _get_completed_job(job_id)
    if view not in job['tables']:
        raise HTTPException(status_code=404, detail=f"Unknown view '{view}'")
    return {"view": view, "rows": job['tables'][view]}

@app.get("/runs/{job_id}/download/{view}")
async def download_run_table(job_id: str, view: str):
    """Download one summary table as CSV."""
    job = _get_completed_job(job_id)
    file_path = job['saved_files'].get(view)
    if view not in VIEW_NAMES or not file_path or not Path(file_path).exists():
        raise HTTPException(status_code=404, detail=f"File for view '{view}' not found for job {job_id}")
    return FileResponse(path=file_path, media_type='text/csv', filename=f"{view}.csv")

def start_server(host: str = "0.0.0.0", port: Optional[int] = None, reload: bool = False):
    """Start the FastAPI server."""
    port = port or config.API_PORT
    logger.info(f"Starting Bike Trip Pipeline API server on {host}:{port}")
    uvicorn.run(
        "api_server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )

if __name__ == "__main__":
    start_server(reload=True)
