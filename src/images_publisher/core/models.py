"""Shared data models for the images publisher."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from PIL import ImageColor
from pydantic import BaseModel, Field, field_validator


class ResizeMode(str, Enum):
    """Resize policy applied to every uploaded image."""

    FIT = "fit"
    STRETCH = "stretch"
    SIDE = "side"
    PAD = "pad"
    CROP = "crop"


class SideOption(str, Enum):
    """Reference side used by the ``side`` resize mode."""

    LONGEST = "longest"
    SHORTEST = "shortest"
    WIDTH = "width"
    HEIGHT = "height"


class Anchor(str, Enum):
    """Placement of the image (pad) or of the crop window (crop)."""

    CENTER = "center"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class OutputFormat(str, Enum):
    """Encoded output format."""

    WEBP = "webp"
    JPG = "jpg"
    PNG = "png"


class TargetBox(BaseModel):
    """Requested output box. Either side may be left unset."""

    width: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)


class FitOptions(BaseModel):
    mode: Literal["fit"] = "fit"
    no_upscale: bool = False


class StretchOptions(BaseModel):
    mode: Literal["stretch"] = "stretch"
    no_upscale: bool = False


class SideOptions(BaseModel):
    mode: Literal["side"] = "side"
    no_upscale: bool = False
    side: SideOption = SideOption.LONGEST


class PadOptions(BaseModel):
    mode: Literal["pad"] = "pad"
    no_upscale: bool = False
    background: str = "#ffffff"
    position: Anchor = Anchor.CENTER

    @field_validator("background")
    @classmethod
    def check_background(cls, value: str) -> str:
        # Raises ValueError for colours Pillow cannot parse
        ImageColor.getrgb(value)
        return value


class CropOptions(BaseModel):
    mode: Literal["crop"] = "crop"
    no_upscale: bool = False
    position: Anchor = Anchor.CENTER


ResizeOptions = Annotated[
    Union[FitOptions, StretchOptions, SideOptions, PadOptions, CropOptions],
    Field(discriminator="mode"),
]


class OutputSettings(BaseModel):
    """Output format and encoder quality (0-100, ignored for PNG)."""

    format: OutputFormat = OutputFormat.WEBP
    quality: int = Field(default=80, ge=0, le=100)

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, value: object) -> object:
        if isinstance(value, OutputFormat):
            return value
        name = str(value or "").strip().lower()
        if name == "jpeg":
            name = "jpg"
        if name not in {f.value for f in OutputFormat}:
            return OutputFormat.WEBP
        return name


class EncodedImage(BaseModel):
    """Result of transforming a single image."""

    file_name: str
    content: bytes
    mime_type: str
    width: int
    height: int


class TreeChange(BaseModel):
    """One entry of a tree layered onto the base tree.

    ``sha=None`` removes ``path`` from the tree.
    """

    path: str
    sha: Optional[str] = None
    mode: Literal["100644"] = "100644"
    type: Literal["blob"] = "blob"

    @property
    def is_deletion(self) -> bool:
        return self.sha is None


class BranchState(BaseModel):
    """Head commit of a branch and its root tree."""

    commit_sha: str
    tree_sha: str


class FolderEntry(BaseModel):
    """A file entry returned by a folder listing."""

    path: str
    download_url: Optional[str] = None
    sha: str


class RepoContext(BaseModel):
    """Repository coordinates and credential for a batch."""

    repository: str
    branch: str = "main"
    folder: str = ""
    token: str = ""

    @field_validator("branch", mode="before")
    @classmethod
    def default_branch(cls, value: object) -> object:
        if value is None or not str(value).strip():
            return "main"
        return str(value).strip()


class UploadItem(BaseModel):
    """A local image offered for upload."""

    content: bytes
    file_name: str
    selected: bool = True


class DeleteItem(BaseModel):
    """A remote path offered for deletion."""

    path: str
    selected: bool = True


class PublishRequest(BaseModel):
    """Everything needed to publish one batch."""

    context: RepoContext
    uploads: List[UploadItem] = Field(default_factory=list)
    deletions: List[DeleteItem] = Field(default_factory=list)
    target: TargetBox = Field(default_factory=TargetBox)
    options: ResizeOptions = Field(default_factory=FitOptions)
    output: OutputSettings = Field(default_factory=OutputSettings)
    message: Optional[str] = None


class PublishConfig(BaseModel):
    """Configuration for the publishing pipeline."""

    api_url: str = "https://api.github.com"
    timeout: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=1, ge=1)
    verify_head: bool = False
    debug: bool = False


class BatchStage(str, Enum):
    """Stages of a publish batch, in order."""

    IDLE = "Idle"
    HEAD_RESOLVED = "HeadResolved"
    BLOBS_CREATED = "BlobsCreated"
    TREE_CREATED = "TreeCreated"
    COMMIT_CREATED = "CommitCreated"
    REF_UPDATED = "RefUpdated"


class BatchResult(BaseModel):
    """Outcome of a publish batch.

    On failure ``stage`` is the stage that failed; on success it is the last
    stage reached.
    """

    success: bool = False
    stage: BatchStage = BatchStage.IDLE
    base: Optional[BranchState] = None
    changes: List[TreeChange] = Field(default_factory=list)
    tree_sha: Optional[str] = None
    commit_sha: Optional[str] = None
    log: List[str] = Field(default_factory=list)
    error: str = ""
    error_type: str = ""
    retryable: bool = False
    nothing_to_commit: bool = False
