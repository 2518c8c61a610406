"""
Page definition loader.

Loads and validates YAML page definitions.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
from pydantic import ValidationError

from dashboard_qa.models.page import Page
from dashboard_qa.utils.config import settings
from dashboard_qa.utils.errors import PageDefinitionError

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r'\$\{(\w+)\}')
PAGE_SUFFIXES = ('.yaml', '.yml')


def default_variables() -> Dict[str, str]:
    """Variables every page file may reference."""
    return {
        "BASE_URL": settings.BASE_URL,
        "DEFAULT_DATE": settings.DEFAULT_DATE,
    }


def interpolate(value: Any, variables: Dict[str, Any]) -> Any:
    """Replace ${NAME} placeholders in every string of a nested structure."""
    if isinstance(value, str):
        result = value
        for match in VARIABLE_PATTERN.finditer(value):
            name = match.group(1)
            if name in variables:
                result = result.replace(match.group(0), str(variables[name]))
            else:
                logger.warning(f"Undefined page variable: {name}")
        return result
    elif isinstance(value, dict):
        return {k: interpolate(v, variables) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate(item, variables) for item in value]
    return value


class PageLoader:
    """Loads and manages page definitions."""

    def __init__(self, pages_dir: Optional[str] = None, variables: Optional[Dict[str, Any]] = None):
        self.pages_dir = Path(pages_dir or settings.PAGES_DIR)
        self.variables = {**default_variables(), **(variables or {})}
        self._pages: Dict[str, Page] = {}
        self._loaded = False

    def load_all(self) -> Dict[str, Page]:
        """Load all page definitions from the pages directory, keyed by file stem."""
        if not self.pages_dir.exists():
            logger.warning(f"Pages directory does not exist: {self.pages_dir}")
            return {}

        self._pages = {}

        for file_path in sorted(self.pages_dir.iterdir()):
            if file_path.suffix not in PAGE_SUFFIXES:
                continue
            try:
                self._pages[file_path.stem] = self.load_file(file_path)
                logger.info(f"Loaded page: {file_path.stem} from {file_path}")
            except PageDefinitionError as e:
                logger.error(str(e))

        self._loaded = True
        logger.info(f"Loaded {len(self._pages)} pages")
        return self._pages

    def load_file(self, file_path: Path) -> Page:
        """Load a single page definition file."""
        file_path = Path(file_path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise PageDefinitionError(f"Failed to read page from {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise PageDefinitionError(f"Page file {file_path} does not contain a mapping")

        variables = {**self.variables, **(data.pop('variables', None) or {})}

        try:
            return Page.model_validate(interpolate(data, variables))
        except ValidationError as e:
            raise PageDefinitionError(f"Invalid page definition in {file_path}: {e}") from e

    def get_page(self, name: str) -> Optional[Page]:
        """Get a page by file stem."""
        if not self._loaded:
            self.load_all()
        return self._pages.get(name)

    def list_pages(self) -> List[str]:
        """List all available page names."""
        if not self._loaded:
            self.load_all()
        return list(self._pages.keys())

    def reload(self) -> int:
        """Reload all pages."""
        self._loaded = False
        self._pages = {}
        pages = self.load_all()
        return len(pages)
