"""Licensed services."""
from typing import Optional

from ..parsing import UNSET
from .base import Resource


class License(Resource):
    kind = "license"
    key_field = "service"

    @property
    def service(self) -> str:
        return self._record["service"]

    @property
    def licensed(self) -> bool:
        return bool(self._record.get("licensed"))

    @property
    def code(self) -> Optional[str]:
        code = self._record.get("code", UNSET)
        return None if code is UNSET else code

    @property
    def site(self) -> bool:
        return bool(self._record.get("site"))

    @property
    def expired(self) -> bool:
        return bool(self._record.get("expired"))

    @property
    def expiration(self) -> Optional[str]:
        expiration = self._record.get("expiration", UNSET)
        return None if expiration is UNSET else expiration

    def _lookup(self) -> "License":
        return self.filer.get_license(self.service)

    def delete(self) -> None:
        self._run("delete", service=self.service)
