from . import BaseModel

class ImageUploadResponse(BaseModel):
    key: str
    url: str
