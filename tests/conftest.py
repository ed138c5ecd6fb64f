from pathlib import Path
from typing import Any, Dict, List

import pytest

from aliasmate.models import Alias
from aliasmate.storage import AliasStorage, ConfigStore

CREATED_AT = 1761321261653


@pytest.fixture
def alias() -> Alias:
    return Alias(
        name="gs",
        command="git status",
        description="git status shortcut",
        tags=["git", "vcs"],
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


@pytest.fixture
def alias_min() -> Alias:
    return Alias(
        name="deploy",
        command="make build\nmake deploy",
        created_at=CREATED_AT,
        updated_at=CREATED_AT + 1000,
    )


@pytest.fixture
def alias_list(alias, alias_min) -> List[Alias]:
    return [alias, alias_min]


@pytest.fixture
def storage_file_data() -> Dict[str, Any]:
    return {
        "aliases": [
            {
                "name": "gs",
                "command": "git status",
                "description": "git status shortcut",
                "tags": ["git", "vcs"],
                "createdAt": CREATED_AT,
                "updatedAt": CREATED_AT,
            },
            {
                "name": "deploy",
                "command": "make build\nmake deploy",
                "createdAt": CREATED_AT,
                "updatedAt": CREATED_AT + 1000,
            },
        ]
    }


@pytest.fixture
def storage_path(tmp_path) -> Path:
    return tmp_path / "aliases.json"


@pytest.fixture
def storage(storage_path) -> AliasStorage:
    return AliasStorage(ConfigStore(storage_path))
