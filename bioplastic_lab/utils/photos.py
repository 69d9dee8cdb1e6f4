"""照片上传与 data URI 编码工具。"""

import base64
from typing import Optional

from fastapi import UploadFile

DEFAULT_MIME = "application/octet-stream"


def encode_data_url(data: bytes, mime_type: Optional[str]) -> str:
    """把原始字节编码为可直接显示的 ``data:`` URI。"""

    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME};base64,{payload}"


async def read_upload_as_data_url(upload: UploadFile) -> str:
    """读取上传文件全部内容并编码为 data URI。

    ``UploadFile`` 是异步文件对象，这里一次性 ``await upload.read()``；照片体积较小，
    不需要分块读取。
    """

    data = await upload.read()
    await upload.seek(0)
    return encode_data_url(data, upload.content_type)
