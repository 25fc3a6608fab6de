"""Main FastAPI application for the cloudkeeper trigger API."""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .. import __version__
from ..errors import ConfigurationError, ResourceNotFoundError
from ..handlers import OPERATIONS, dispatch

logger = logging.getLogger(__name__)


# Pydantic models
class InvokeRequest(BaseModel):
    region: str
    account: str = ""
    id: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


class InvokeResponse(BaseModel):
    operation: str
    result: Dict[str, Any]


class OperationsResponse(BaseModel):
    operations: List[str]


app = FastAPI(
    title="Cloudkeeper API",
    description="Trigger volume lifecycle and tag compliance operations",
    version=__version__,
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Cloudkeeper API is running", "version": __version__}


@app.get("/operations", response_model=OperationsResponse)
async def list_operations():
    """List the operations that can be invoked."""
    return OperationsResponse(operations=sorted(OPERATIONS))


@app.post("/operations/{operation}", response_model=InvokeResponse)
def invoke(operation: str, request: InvokeRequest):
    """Run one operation synchronously with the given trigger payload."""
    if operation not in OPERATIONS:
        raise HTTPException(
            status_code=404,
            detail={
                "code": "unknown_operation",
                "message": f"Operation {operation} not found",
                "hint": f"Choose one of: {', '.join(sorted(OPERATIONS))}",
            },
        )

    try:
        result = dispatch(operation, request.model_dump(exclude_none=True))
    except ConfigurationError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "configuration_error", "message": str(e)},
        )
    except ResourceNotFoundError as e:
        raise HTTPException(
            status_code=404,
            detail={"code": "resource_not_found", "message": str(e)},
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Operation {operation} failed: {e}")
        raise HTTPException(
            status_code=502,
            detail={
                "code": "aws_error",
                "message": str(e),
                "hint": "Check AWS credentials and permissions",
            },
        )

    return InvokeResponse(operation=operation, result=result)
