from pathlib import Path

from fastapi import HTTPException, UploadFile

from finpilot.pipelines.upload_validator import safe_upload_name


async def save_upload(file: UploadFile, directory: str, user_id: str) -> Path:
    """Write an uploaded file into *directory* under a sanitized, per-user name."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename")
    out_path = Path(directory) / safe_upload_name(user_id, file.filename)
    out_path.write_bytes(await file.read())
    return out_path
