from dataclasses import dataclass


@dataclass
class BBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def xywh(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    @property
    def pixel_xywh(self) -> tuple[int, int, int, int]:
        """Box in pixel coordinates. Fractions are truncated, not rounded."""
        return (int(self.x), int(self.y), int(self.width), int(self.height))

    def to_dict(self) -> list:
        return list(self.xywh)


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    @classmethod
    def zero(cls) -> "Color":
        return cls(0, 0, 0)

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __floordiv__(self, count: int) -> "Color":
        return Color(self.r // count, self.g // count, self.b // count)

    def __iter__(self):
        return iter((self.r, self.g, self.b))

    def to_rgb(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass
class Category:
    id: int
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class Image:
    id: str
    file_name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "file_name": self.file_name}


@dataclass
class Annotation:
    id: str
    category_id: int
    image_id: str
    bbox: BBox

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "image_id": self.image_id,
            "bbox": self.bbox.to_dict(),
        }
