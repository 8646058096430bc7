from .objects import _ObjectOperations


class S3Client(_ObjectOperations):
    pass
