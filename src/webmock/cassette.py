"""
Webmock Cassette Loader

Loads declarative stub definitions ("cassettes") from YAML or JSON files and
registers them in a StubRegistry.

Supported document formats:
- Format 1: [...]                      (list of entries)
- Format 2: {"interactions": [...]}    (wrapped format)
- Format 3: {"stubs": [...]}           (alternative wrapper)

Each entry is either flat or VCR-style:

    - method: GET
      url: /hello
      response:
        status: 200
        body: OK, zoomer
        headers:
          X-Request-Id: fake-request-id

    - request:
        method: POST
        url: /book
        headers:
          Content-Type: application/json
      response:
        status: 201
        body: Book created

Loading fails as a whole on the first unreadable file or malformed entry;
nothing is registered in that case.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from .common import stringify
from .errors import CassetteError, StubConfigurationError
from .registry import StubRegistry
from .stub import Stub, with_headers, with_response


logger = logging.getLogger("webmock.cassette")

Decoder = Callable[[Path], Any]


def decode_yaml(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def decode_json(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


DEFAULT_DECODERS: Dict[str, Decoder] = {
    '.yml': decode_yaml,
    '.yaml': decode_yaml,
    '.json': decode_json,
}

WRAPPER_KEYS = ('interactions', 'stubs')


class CassetteLoader:
    """
    Turns cassette files into stubs.

    Directories are read non-recursively, in sorted file-name order; files
    without a registered decoder are skipped. Entries keep their document
    order, so precedence in the registry follows file order then entry order.

    Example:
        loader = CassetteLoader()
        count = loader.load_into(registry, 'tests/fixtures')
        print(f"Registered {count} stubs")
    """

    def __init__(self, decoders: Optional[Mapping[str, Decoder]] = None):
        """
        Initialize cassette loader.

        Args:
            decoders: Mapping of lower-case file suffix to decoder callable.
                Defaults to YAML (.yml, .yaml) and JSON (.json).
        """
        self.decoders: Dict[str, Decoder] = dict(decoders if decoders is not None else DEFAULT_DECODERS)

    def load(self, path: Union[str, Path]) -> List[Stub]:
        """
        Load stubs from a cassette file or directory.

        Args:
            path: Cassette file, or directory of cassette files

        Returns:
            Stubs in registration order

        Raises:
            CassetteError: If the path is missing or any file or entry is invalid
        """
        path = Path(path)
        stubs = []
        for file_path in self.cassette_files(path):
            stubs.extend(self.load_file(file_path))
        return stubs

    def load_into(self, registry: StubRegistry, path: Union[str, Path]) -> int:
        """
        Load stubs and register them as a single batch.

        Returns:
            Number of stubs registered
        """
        stubs = self.load(path)
        registry.extend(stubs)
        logger.info(f"Loaded {len(stubs)} stubs from {path}")
        return len(stubs)

    def cassette_files(self, path: Path) -> List[Path]:
        """List the files a load of path will read, in load order."""
        if not path.exists():
            raise CassetteError(f"Cassette path not found: {path}")

        if path.is_file():
            if self._decoder_for(path) is None:
                raise CassetteError(
                    f"Unsupported cassette format: {path} "
                    f"(supported: {', '.join(sorted(self.decoders))})"
                )
            return [path]

        try:
            entries = sorted(path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise CassetteError(f"Cannot read cassette directory {path}: {e}") from e

        files = []
        for entry in entries:
            if not entry.is_file():
                continue
            if self._decoder_for(entry) is None:
                logger.debug(f"Skipping non-cassette file {entry}")
                continue
            files.append(entry)
        return files

    def load_file(self, path: Path) -> List[Stub]:
        """
        Decode one cassette file into stubs.

        Raises:
            CassetteError: If the file cannot be read or decoded, or an entry
                is malformed
        """
        decoder = self._decoder_for(path)
        if decoder is None:
            raise CassetteError(f"Unsupported cassette format: {path}")

        try:
            document = decoder(path)
        except OSError as e:
            raise CassetteError(f"Cannot read cassette {path}: {e}") from e
        except (yaml.YAMLError, ValueError) as e:
            raise CassetteError(f"Cannot decode cassette {path}: {e}") from e

        stubs = []
        for index, entry in enumerate(self._entries(document, path)):
            try:
                stubs.append(parse_entry(entry))
            except (StubConfigurationError, TypeError, ValueError) as e:
                raise CassetteError(f"Invalid entry #{index} in {path}: {e}") from e

        logger.debug(f"Decoded {len(stubs)} stubs from {path}")
        return stubs

    def _decoder_for(self, path: Path) -> Optional[Decoder]:
        return self.decoders.get(path.suffix.lower())

    def _entries(self, document: Any, path: Path) -> List[Any]:
        if document is None:
            return []
        if isinstance(document, list):
            return document
        if isinstance(document, dict):
            for key in WRAPPER_KEYS:
                if key in document:
                    entries = document[key] or []
                    if not isinstance(entries, list):
                        raise CassetteError(f"'{key}' in {path} must be a list")
                    return entries
            raise CassetteError(
                f"Unexpected cassette format in {path}. "
                f"Expected a list of entries or a mapping with one of "
                f"{list(WRAPPER_KEYS)}. Found keys: {list(document.keys())}"
            )
        raise CassetteError(
            f"Unexpected cassette format in {path}: {type(document).__name__}"
        )


def parse_entry(entry: Any) -> Stub:
    """
    Turn one decoded cassette entry into a Stub.

    Raises:
        ValueError: If required fields are missing or have the wrong type
    """
    if not isinstance(entry, dict):
        raise ValueError(f"entry must be a mapping, got {type(entry).__name__}")

    request = entry.get('request', entry)
    if not isinstance(request, dict):
        raise ValueError("'request' must be a mapping")

    method = request.get('method')
    url = request.get('url')
    if not method:
        raise ValueError("missing 'method'")
    if not url:
        raise ValueError("missing 'url'")

    response = entry.get('response') or {}
    if not isinstance(response, dict):
        raise ValueError("'response' must be a mapping")

    headers = response.get('headers') or {}
    if not isinstance(headers, dict):
        raise ValueError("'response.headers' must be a mapping")

    options = []
    if request.get('headers'):
        options.append(with_headers(request['headers']))
    options.append(with_response(
        response.get('status', 200),
        stringify(response.get('body')),
        headers
    ))

    return Stub.create(str(method), str(url), "", *options)
