from fastapi import APIRouter, HTTPException, BackgroundTasks, UploadFile, File, Request
import pandas as pd
import io
import logging
from typing import Dict

from api.models import (AnalysisRequest, AnalysisResponse, EvaluationResponse, MetricsResponse,
                        ThresholdModel, TrainingStatus)
from data.loader import MedicalDataLoader
from data.preprocessor import SepsisDataPreprocessor
from engine.analyzer import ModelNotReadyError, SepsisRiskEngine
from models.patient import PatientRecord
from utils.helpers import DataValidator

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_READY_DETAIL = "Model not loaded. Please train the model first."

def get_engine(request: Request) -> SepsisRiskEngine:
    return request.app.state.engine

async def read_csv_upload(file: UploadFile) -> pd.DataFrame:
    if not file.filename or not file.filename.endswith('.csv'):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    contents = await file.read()
    try:
        return pd.read_csv(io.BytesIO(contents))
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Invalid CSV file: {str(e)}")

@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    engine = get_engine(request)
    return {
        "status": "healthy",
        "model_loaded": engine.is_trained,
        "training_status": engine.state.status,
        "timestamp": pd.Timestamp.now().isoformat()
    }

@router.post("/train")
async def train_model(request: Request, background_tasks: BackgroundTasks, file: UploadFile = File(...)):
    """Start model training in background"""
    engine = get_engine(request)

    if engine.is_training:
        raise HTTPException(status_code=400, detail="Training already in progress")

    df = await read_csv_upload(file)

    validation = DataValidator.validate_sepsis_data(df)
    if not validation["is_valid"]:
        raise HTTPException(status_code=400, detail=f"Invalid dataset: {validation['errors']}")

    engine.state.status = "initiated"
    engine.state.progress = 0.0
    engine.state.message = "Training job queued"
    background_tasks.add_task(train_background, engine, df)

    logger.info(f"Training queued for {file.filename} ({len(df)} rows)")
    return {
        "message": "Training started",
        "status": "initiated",
        "file": file.filename,
        "warnings": validation["warnings"]
    }

@router.get("/training_status", response_model=TrainingStatus)
async def get_training_status(request: Request):
    """Get current training status"""
    return TrainingStatus(**get_engine(request).training_status())

@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(request: Request):
    """Quality metrics synthesized at training completion"""
    try:
        return MetricsResponse(**get_engine(request).metrics.to_dict())
    except ModelNotReadyError:
        raise HTTPException(status_code=400, detail=NOT_READY_DETAIL)

@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_patient(request: Request, payload: AnalysisRequest):
    """Full explainable sepsis risk report for one patient"""
    engine = get_engine(request)

    try:
        record = PatientRecord.from_dict(payload.model_dump())

        validation = DataValidator.validate_patient_record(record)
        if not validation["is_valid"]:
            raise HTTPException(status_code=400, detail=f"Invalid patient record: {validation['errors']}")

        report = engine.analyze(record, payload.patient_id)
        return AnalysisResponse(**report.to_dict())

    except ModelNotReadyError:
        raise HTTPException(status_code=400, detail=NOT_READY_DETAIL)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in analysis: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis error: {str(e)}")

@router.post("/batch_analyze")
async def batch_analyze(request: Request, file: UploadFile = File(...)):
    """Analyze the latest observation of every patient in a CSV file"""
    engine = get_engine(request)
    if not engine.is_trained:
        raise HTTPException(status_code=400, detail=NOT_READY_DETAIL)

    df = await read_csv_upload(file)

    try:
        loader = MedicalDataLoader()
        loader.load_frame(df)
        records = SepsisDataPreprocessor(loader).latest_records()
        reports = engine.analyze_batch(records)
    except Exception as e:
        logger.error(f"Batch analysis error: {e}")
        raise HTTPException(status_code=500, detail=f"Batch analysis error: {str(e)}")

    risk_distribution: Dict[str, int] = {}
    for report in reports:
        risk_distribution[report.overall_risk.value] = risk_distribution.get(report.overall_risk.value, 0) + 1

    return {
        "reports": [report.to_dict() for report in reports],
        "total_processed": len(reports),
        "risk_distribution": risk_distribution
    }

@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_labelled(request: Request, file: UploadFile = File(...)):
    """Score a test CSV row by row against the training labels of the same patients"""
    engine = get_engine(request)
    if not engine.is_trained:
        raise HTTPException(status_code=400, detail=NOT_READY_DETAIL)

    df = await read_csv_upload(file)

    try:
        report = engine.evaluate_labelled(df)
    except Exception as e:
        logger.error(f"Evaluation error: {e}")
        raise HTTPException(status_code=500, detail=f"Evaluation error: {str(e)}")

    return EvaluationResponse(**report.to_dict())

@router.get("/thresholds", response_model=Dict[str, ThresholdModel])
async def get_thresholds(request: Request):
    """Current threshold table"""
    table = get_engine(request).get_thresholds()
    return {name: ThresholdModel(**threshold.to_dict()) for name, threshold in table.items()}

@router.put("/thresholds", response_model=Dict[str, ThresholdModel])
async def update_thresholds(request: Request, partial: Dict[str, ThresholdModel]):
    """Replace the given threshold entries wholesale"""
    engine = get_engine(request)
    engine.update_thresholds({name: threshold.model_dump() for name, threshold in partial.items()})
    table = engine.get_thresholds()
    return {name: ThresholdModel(**threshold.to_dict()) for name, threshold in table.items()}

def train_background(engine: SepsisRiskEngine, df: pd.DataFrame):
    """Background training function for API"""
    try:
        engine.train(df)
        logger.info("Background training completed successfully")
    except Exception as e:
        # The engine records the failure in its status
        logger.error(f"Background training error: {e}")
