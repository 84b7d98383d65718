from pydantic import BaseModel, ConfigDict, Field, field_serializer
from datetime import datetime
from typing import Optional, List, Literal, Union
import base64


class ContentModel(BaseModel):
    """Base for content models: fields are populated by name or by wire alias"""
    model_config = ConfigDict(populate_by_name=True)


class Poem(ContentModel):
    title: str
    author: str
    lines: List[str]


class SingleJoke(ContentModel):
    kind: Literal["single"] = Field(default="single", alias="type")
    text: str = Field(alias="joke")


class TwoPartJoke(ContentModel):
    kind: Literal["twopart"] = Field(default="twopart", alias="type")
    setup: str
    delivery: str


# Tagged union; the "type" tag matches the upstream joke API payload
Joke = Union[SingleJoke, TwoPartJoke]


class Activity(ContentModel):
    description: str = Field(alias="activity")


class Fact(ContentModel):
    fact: str


class Comic(ContentModel):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    alt_text: str = Field(default="", alias="altText")


class Photo(ContentModel):
    image_bytes: bytes = Field(alias="imageBlob", repr=False)
    label: str

    @property
    def image_url(self) -> str:
        """Inline data URL for the stored JPEG"""
        return jpeg_data_url(self.image_bytes)


class Edition(ContentModel):
    """One published day: administrator content plus aggregated extras"""

    date: str
    headline: str
    photo: Photo
    poem: Poem
    joke: Joke
    activity: Activity
    cat_fact: Fact = Field(alias="catFact")
    dog_fact: Fact = Field(alias="dogFact")
    trivia_fact: Fact = Field(alias="triviaFact")
    comic: Comic
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_serializer('created_at', 'updated_at', when_used='json')
    def serialize_timestamps(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None


class CalendarEntry(BaseModel):
    """Projection of an Edition used for month views"""
    date: str
    headline: str
    label: str
    image_bytes: Optional[bytes] = Field(default=None, repr=False)

    @property
    def image_url(self) -> Optional[str]:
        return jpeg_data_url(self.image_bytes) if self.image_bytes else None


def jpeg_data_url(data: bytes) -> str:
    """Encode JPEG bytes as a base64 data URL"""
    return f"data:image/jpeg;base64,{base64.b64encode(data).decode('ascii')}"
