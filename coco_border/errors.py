class BorderColorError(Exception):
    """Base class for every error that aborts a border color run."""


class DatasetLoadError(BorderColorError):
    pass


class MissingImageError(BorderColorError, KeyError):
    def __init__(self, image_id: str, annotation_id: str | None = None):
        self.image_id = image_id
        self.annotation_id = annotation_id
        if annotation_id is None:
            message = f"Image {image_id} not found"
        else:
            message = (
                f"Annotation {annotation_id} references non-existent image {image_id}"
            )
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]


class InvalidGeometryError(BorderColorError, ValueError):
    pass


class DecodeError(BorderColorError, OSError):
    pass


class EmptyDatasetError(BorderColorError, ValueError):
    pass
