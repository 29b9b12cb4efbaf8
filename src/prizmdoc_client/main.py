"""
prizmdoc-convert
================

Converts a document with PrizmDoc Server or PrizmDoc Cloud, for example
a DOCX to a PDF::

    PRIZMDOC_API_KEY=... prizmdoc-convert input.docx output.pdf

The work happens in one affinity session so that the upload, the
conversion process and the download all reach the same server node:

1. POST the input file as a work file.
2. Start a content converter process for that work file.
3. Poll the process until it is no longer "processing".
4. Download the output work file.

Environment variables
~~~~~~~~~~~~~~~~~~~~~
```
PRIZMDOC_URL      Base URL of PrizmDoc            (default https://api.accusoft.com)
PRIZMDOC_API_KEY  API key sent as Acs-Api-Key     (optional)
REQUEST_TIMEOUT   Per-request timeout in seconds  (default 60)
POOL_MAXSIZE      HTTP connection pool size       (default 10)
LOG_LEVEL         Logging level                   (default INFO)
LOG_FORMAT        console | json                  (default console)
```
"""

from __future__ import annotations

import argparse
from pathlib import Path

import requests
import structlog

from .client import PrizmDocRestClient
from .config import Settings
from .errors import ConversionFailedError, PrizmDocError, UnexpectedResponseError
from .logging_config import configure_logging
from .session import AffinitySession
from .transport import close_shared_transport

WORK_FILE_PATH = "/PCCIS/V1/WorkFile"
CONTENT_CONVERTERS_PATH = "/v2/contentConverters"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _field(body, *path):
    """Follow `path` through a JSON body, raising `UnexpectedResponseError` if it is not there."""
    value = body
    for key in path:
        try:
            value = value[key]
        except (KeyError, IndexError, TypeError):
            name = ".".join(str(part) for part in path)
            raise UnexpectedResponseError(
                f"PrizmDoc response did not contain {name!r}: {body!r}"
            ) from None
    return value


def convert_file(
    session: AffinitySession,
    input_path: Path,
    output_path: Path,
    output_format: str = "pdf",
) -> dict:
    """
    Convert `input_path` to `output_format` and save the result to `output_path`.

    Returns the final process JSON. Raises `ConversionFailedError` when the
    process ends in any state other than "complete".
    """
    log = structlog.get_logger(__name__)

    with input_path.open("rb") as input_file:
        with session.post(
            WORK_FILE_PATH,
            data=input_file,
            headers={"Content-Type": "application/octet-stream"},
        ) as response:
            response.raise_for_status()
            input_file_id = _field(response.json(), "fileId")
    log.info("Uploaded work file", path=str(input_path), file_id=input_file_id)

    payload = {
        "input": {
            "sources": [{"fileId": input_file_id}],
            "dest": {"format": output_format},
        }
    }
    with session.post(CONTENT_CONVERTERS_PATH, json=payload) as response:
        response.raise_for_status()
        process_id = _field(response.json(), "processId")
    log.info("Started conversion", process_id=process_id, format=output_format)

    with session.get_final_process_status(
        f"{CONTENT_CONVERTERS_PATH}/{process_id}"
    ) as response:
        response.raise_for_status()
        process = response.json()

    state = process.get("state")
    if state != "complete":
        raise ConversionFailedError(state, process)

    output_file_id = _field(process, "output", "results", 0, "fileId")
    with session.get(f"{WORK_FILE_PATH}/{output_file_id}") as response:
        response.raise_for_status()
        with output_path.open("wb") as output_file:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                output_file.write(chunk)
    log.info("Saved converted file", path=str(output_path), file_id=output_file_id)

    return process


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="prizmdoc-convert",
        description="Convert a document using PrizmDoc Server or PrizmDoc Cloud.",
    )
    parser.add_argument("input", type=Path, help="Document to convert")
    parser.add_argument("output", type=Path, help="Where to write the converted file")
    parser.add_argument(
        "--format", default="pdf", help="Output format (default: %(default)s)"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `prizmdoc-convert` command. Returns the exit code."""
    args = _parse_args(argv)
    log = structlog.get_logger(__name__)

    try:
        settings = Settings()
    except ValueError as e:
        log.error("Configuration error", error=str(e))
        return 2

    configure_logging(settings)
    log.info("Converting document", url=settings.PRIZMDOC_URL, input=str(args.input))

    client = PrizmDocRestClient.from_settings(settings)
    session = client.create_affinity_session()
    try:
        convert_file(session, args.input, args.output, args.format)
    except ConversionFailedError as e:
        log.error("Conversion failed", state=e.state, process=e.process)
        return 1
    except (PrizmDocError, requests.RequestException, OSError) as e:
        log.error("Conversion aborted", error=str(e))
        return 1
    finally:
        close_shared_transport()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
