from moviesoft.services.upload_store import UploadStore, upload_store


# Dependency to get the upload store (overridable in tests)
def get_upload_store() -> UploadStore:
    return upload_store
