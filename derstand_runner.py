import io
import time
from typing import Tuple, Union

from derstand import TAPE_SIZE, DerstandError, DerstandInterpreter


class SourceLoadError(DerstandError):
    pass


def load_source(path: str) -> str:
    """Read a program file as UTF-8 text."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise SourceLoadError(f"File not found: {path}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise SourceLoadError(f"Error reading file: {e}") from e


def run_once(source: str, input_data: Union[bytes, str] = b"", tape_size: int = TAPE_SIZE) -> str:
    """Compile and execute on a fresh interpreter (stateless).

    input_data is served in order to ',' and reads past its end yield 0, so
    the run never touches stdin.
    """
    if isinstance(input_data, str):
        input_data = input_data.encode("utf-8")
    itp = DerstandInterpreter(tape_size=tape_size, input_stream=io.BytesIO(input_data))
    itp.compile(source)
    return itp.execute()


def run_persistent(itp: DerstandInterpreter, source: str) -> str:
    """Compile and execute on an existing interpreter, keeping its tape."""
    itp.compile(source)
    return itp.execute()


def timed_execute(itp: DerstandInterpreter) -> Tuple[str, float]:
    """Execute the compiled program, returning (output, elapsed seconds)."""
    start_time = time.perf_counter()
    output = itp.execute()
    return output, time.perf_counter() - start_time


def format_elapsed(seconds: float) -> str:
    return f"Execution time: {seconds * 1000:.3f} ms"
