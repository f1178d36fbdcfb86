"""
작업 첨부파일 업로드/삭제 서비스 (AWS S3)
"""

import logging
import os
import uuid
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError
from fastapi import UploadFile

from taskflow.core.config import Settings, settings
from taskflow.core.exceptions import BusinessException, ErrorCode
from taskflow.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class FileService:
    def __init__(self, app_settings: Settings = settings, client: Any = None):
        self.bucket_name = app_settings.S3_BUCKET_ATTACHMENTS
        self.region = app_settings.AWS_REGION
        self.max_size = app_settings.MAX_ATTACHMENT_SIZE

        # AWS S3 클라이언트 초기화
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=app_settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=app_settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=self.region,
        )

        logger.info(f"FileService 초기화: bucket={self.bucket_name}, region={self.region}")

    def object_url(self, s3_key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{s3_key}"

    def upload_attachment(self, file: UploadFile, task_id: int, user_id: str) -> Dict[str, Any]:
        """
        작업 첨부파일 업로드

        Args:
            file: 업로드할 파일
            task_id: 작업 ID
            user_id: 업로드한 사용자 ID

        Returns:
            dict: TaskAttachment 생성에 필요한 정보
        """
        file.file.seek(0, 2)
        file_size = file.file.tell()
        file.file.seek(0)

        if file_size > self.max_size:
            raise BusinessException(ErrorCode.ATTACHMENT_TOO_LARGE)

        # S3 키 생성: tasks/{task_id}/{uuid}{ext}
        file_extension = os.path.splitext(file.filename)[1] if file.filename else ""
        s3_key = f"tasks/{task_id}/{uuid.uuid4()}{file_extension}"
        content_type = file.content_type or "application/octet-stream"

        try:
            self.client.upload_fileobj(
                file.file,
                self.bucket_name,
                s3_key,
                ExtraArgs={"ContentType": content_type},
            )
        except ClientError as e:
            logger.error(f"S3 업로드 실패: {e}")
            raise BusinessException(ErrorCode.ATTACHMENT_UPLOAD_FAILED)

        logger.info(f"파일 업로드 성공: {s3_key}")
        return {
            "name": file.filename or s3_key.rsplit("/", 1)[-1],
            "url": self.object_url(s3_key),
            "content_type": content_type,
            "size": file_size,
            "s3_key": s3_key,
            "uploaded_by": user_id,
            "uploaded_at": utc_now(),
        }

    def delete_file(self, s3_key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=s3_key)
            logger.info(f"파일 삭제 성공: {s3_key}")
            return True
        except ClientError as e:
            logger.error(f"파일 삭제 실패: {e}")
            return False


_file_service: Optional[FileService] = None


def get_file_service() -> FileService:
    global _file_service
    if _file_service is None:
        _file_service = FileService()
    return _file_service
