"""
Public bapi services: asset catalogue and announcements.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from binance_streams.errors import DecodeError, ServiceError
from binance_streams.rest.client import Client, Request


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Asset(_Response):
    asset_code: str = Field(alias="assetCode")
    logo_url: str = Field(default="", alias="logoUrl")
    asset_digit: int = Field(default=0, alias="assetDigit")
    trading: bool = False


class GetAllAssetsResponse(_Response):
    data: list[Asset] = Field(default_factory=list)
    success: bool = False


class Article(_Response):
    id: int
    code: str = ""
    title: str = ""
    type: int = 0
    release_date: int = Field(default=0, alias="releaseDate")


class Catalog(_Response):
    catalog_id: int = Field(alias="catalogId")
    icon: str = ""
    catalog_name: str = Field(default="", alias="catalogName")
    catalog_type: int = Field(default=0, alias="catalogType")
    total: int = 0
    articles: list[Article] = Field(default_factory=list)


class AnnouncementsData(_Response):
    catalogs: list[Catalog] = Field(default_factory=list)


class GetAllAnnouncementsResponse(_Response):
    message: Optional[str] = None
    data: AnnouncementsData = Field(default_factory=AnnouncementsData)
    success: bool = False


def _parse(model: type[BaseModel], data: bytes):
    try:
        return model.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(
            f"Response does not match {model.__name__}",
            raw_data=data,
            expected_type=model.__name__,
            component="rest",
        ) from e


class GetAllAssetsService:
    endpoint = "/bapi/asset/v2/public/asset/asset/get-all-asset"

    def __init__(self, client: Client) -> None:
        self._client = client

    def do(self) -> GetAllAssetsResponse:
        """
        Raises:
            ServiceError: If the response reports success=false
        """
        data = self._client.call_api(Request(method="GET", endpoint=self.endpoint))
        res: GetAllAssetsResponse = _parse(GetAllAssetsResponse, data)
        if not res.success:
            raise ServiceError("failed to get the assets", component="GetAllAssetsService")
        return res


class GetAllAnnouncementsService:
    endpoint = "/bapi/apex/v1/public/apex/cms/article/list/query"

    def __init__(self, client: Client) -> None:
        self._client = client
        self._type = 1
        self._page_no = 1
        self._page_size = 10
        self._catalog_id = 48

    def page(self, page_no: int, page_size: int = 10) -> GetAllAnnouncementsService:
        self._page_no = page_no
        self._page_size = page_size
        return self

    def catalog(self, catalog_id: int) -> GetAllAnnouncementsService:
        self._catalog_id = catalog_id
        return self

    def do(self) -> GetAllAnnouncementsResponse:
        request = Request(method="GET", endpoint=self.endpoint).set_params(
            {
                "type": self._type,
                "pageNo": self._page_no,
                "pageSize": self._page_size,
                "catalogId": self._catalog_id,
            }
        )
        data = self._client.call_api(request)
        res: GetAllAnnouncementsResponse = _parse(GetAllAnnouncementsResponse, data)
        if not res.success:
            text = "failed to get announcements"
            if res.message:
                text += f": {res.message}"
            raise ServiceError(text, component="GetAllAnnouncementsService")
        return res
