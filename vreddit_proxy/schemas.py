from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class GenericParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# DASH manifest, as produced by xmltodict with list-forced tags.


class Representation(GenericParams):
    bandwidth: int = Field(..., description="Stream bitrate in bits per second.", alias="@bandwidth")
    base_urls: List[str] = Field(..., min_length=1, description="Relative media paths.", alias="BaseURL")

    @field_validator("base_urls", mode="before")
    def unwrap_base_urls(cls, value: Any):
        # <BaseURL foo="bar">path</BaseURL> parses to {"@foo": "bar", "#text": "path"}
        if isinstance(value, list):
            return [item.get("#text") if isinstance(item, dict) else item for item in value]
        return value

    @property
    def base_url(self) -> str:
        return self.base_urls[0]


class AdaptationSet(GenericParams):
    content_type: Literal["audio", "video"] = Field(..., alias="@contentType")
    representations: List[Representation] = Field(..., min_length=1, alias="Representation")


class Period(GenericParams):
    adaptation_sets: List[AdaptationSet] = Field(default_factory=list, alias="AdaptationSet")


class StreamManifest(GenericParams):
    periods: List[Period] = Field(..., min_length=1, alias="Period")

    def find_adaptation_set(self, content_type: str) -> Optional[AdaptationSet]:
        """Return the first adaptation set of the first period with the given content type."""
        return next(
            (adaptation for adaptation in self.periods[0].adaptation_sets if adaptation.content_type == content_type),
            None,
        )


class ManifestDocument(GenericParams):
    mpd: StreamManifest = Field(..., alias="MPD")


# Reddit post listing, as returned by `{post_url}.json`.


class RedditVideo(BaseModel):
    dash_url: str


class SecureMedia(BaseModel):
    reddit_video: Optional[RedditVideo] = None


class PostData(BaseModel):
    secure_media: Optional[SecureMedia] = None
    crosspost_parent_list: Optional[List["PostData"]] = None

    @property
    def is_crosspost(self) -> bool:
        return bool(self.crosspost_parent_list)

    @property
    def dash_url(self) -> Optional[str]:
        """The manifest URL of the attached video, following one level of cross-posting."""
        post = self.crosspost_parent_list[0] if self.is_crosspost else self
        if post.secure_media and post.secure_media.reddit_video:
            return post.secure_media.reddit_video.dash_url
        return None


class MoreThing(BaseModel):
    kind: Literal["more"]


class CommentThing(BaseModel):
    kind: Literal["t1"]


class PostThing(BaseModel):
    kind: Literal["t3"]
    data: PostData


Thing = Annotated[Union[MoreThing, CommentThing, PostThing], Field(discriminator="kind")]


class ListingData(BaseModel):
    children: List[Thing]


class Listing(BaseModel):
    kind: Literal["Listing"]
    data: ListingData


PostListing = TypeAdapter(List[Listing])
