"""Entry point — wires Config → strategies → RoastService and roasts one local file."""
import asyncio
import logging
import sys

from rich.logging import RichHandler

from photoroast.completion import Success
from photoroast.config import Config
from photoroast.constants import MSG_PERSONAS, MSG_STARTING, MSG_USAGE
from photoroast.encoding import EncodedImage, LocalImageFile
from photoroast.personas import available_personas, resolve_persona
from photoroast.service import build_service


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


async def roast(config: Config, path: str, persona: str | None = None) -> tuple[bool, str]:
    """Run the full pipeline for *path*. Returns (ok, text to show)."""
    logger = logging.getLogger(__name__)
    try:
        file = LocalImageFile.from_path(path)
    except OSError as exc:
        logger.error("Cannot open %s: %s", path, exc)
        return False, f"Cannot open {path}"

    service = await build_service(config)
    try:
        outcome = service.validate(file)
        if not outcome.ok:
            return False, outcome.error.message

        logger.info(MSG_STARTING, outcome.sanitized_name, resolve_persona(persona).value)
        encoded = await service.encode(file)
        match encoded:
            case EncodedImage():
                pass
            case error:
                return False, error.message

        result = await service.generate(encoded, persona=persona)
        match result:
            case Success(text=text):
                return True, text
            case failure:
                return False, failure.message
    finally:
        await service.aclose()


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    match args:
        case [path]:
            persona = None
        case [path, persona]:
            pass
        case _:
            print(MSG_USAGE)
            print(MSG_PERSONAS % ", ".join(available_personas()))
            return 1

    config = Config.from_env()
    _setup_logging(config.log_level)
    ok, text = asyncio.run(roast(config, path, persona))
    print(text)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
