"""
api/routes/uploads.py -- Pre-signed image upload URLs.

Routes:
  GET /get-upload-url -- returns {"uploadUrl": "<signed S3 PUT URL>"}
"""

from fastapi import APIRouter, Request

from api.models import UploadUrlResponse
from media.uploads import UploadSigner

router = APIRouter()


@router.get("/get-upload-url", response_model=UploadUrlResponse)
def get_upload_url(request: Request) -> UploadUrlResponse:
    signer: UploadSigner = request.app.state.upload_signer
    return UploadUrlResponse(uploadUrl=signer.generate_upload_url())
