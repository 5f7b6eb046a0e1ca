"""Drive terminal programs from tests: encode input, replay recordings, read the screen."""

from .config import HarnessConfig, apply_env_overrides, load_config
from .debug_log import cleanup_test_log, create_test_log, read_test_log, wait_for_log_line
from .headless import ExitStatus, HeadlessTerminal, TerminalSize
from .keys import (
    CTRL_C,
    CTRL_D,
    CTRL_J,
    CTRL_M,
    CTRL_Z,
    DEFAULT_KEY_MODES,
    ENTER,
    ESCAPE,
    SHIFT_TAB,
    TAB,
    FunctionKey,
    Key,
    KeyboardEncoding,
    KeyEncodeModes,
    KeyEncoder,
    KeyEncodingError,
    KeyPress,
    Modifiers,
    TerminalKeyEncoder,
    encode_key,
    encode_key_name,
    parse_key_name,
    send_alt_key,
    send_keys,
    type_and_execute,
    type_string,
)
from .kitty import KittyTransport, kitty_available, should_use_panel
from .logging_config import get_logger, setup_logging
from .mouse import (
    MouseButton,
    ScrollDirection,
    encode_mouse_drag,
    encode_mouse_move,
    encode_mouse_press,
    encode_mouse_release,
    encode_mouse_scroll,
    send_mouse_click,
    send_mouse_drag,
    send_mouse_drag_with_steps,
    send_mouse_move,
    send_mouse_press,
    send_mouse_release,
    send_mouse_scroll,
)
from .orchestrator import ExecutionOrchestrator, ExecutionResult, Snapshot
from .patterns import create_env_wrapper, create_mock_executable, parse_mock_log, wait_for_file
from .recording import (
    FocusIn,
    FocusOut,
    KeyBatch,
    MouseDrag,
    MouseMove,
    MousePress,
    MouseRelease,
    MouseScroll,
    ParseWarning,
    Paste,
    ReplayEvent,
    Resize,
    WarningCollector,
    load_recording,
    parse_recording,
)
from .replay import ReplayTiming, replay, replay_recording
from .screen import (
    AnsiColor,
    clean_trailing_whitespace,
    extract_colors,
    extract_row_colors,
    extract_row_colors_parsed,
    fg_color_at_text,
    find_horizontal_separator_row,
    find_separator_cols_at_row,
    find_separator_rows_at_col,
    find_vertical_separator_col,
    split_raw_and_clean,
    split_tokens,
    strip_escape_codes,
)
from .transport import IdentityGenerator, Transport, TransportError
from .wait import (
    BRIEF_PAUSE,
    TimedSample,
    WaitTimeout,
    best_effort,
    pause_briefly,
    run_with_timeout,
    sample_rapidly,
    sample_screen_rapidly,
    wait_for_clean_contains,
    wait_for_ready_marker,
    wait_for_screen_text,
    wait_for_screen_text_clean,
    wait_for_screen_text_clean_or_timeout,
    wait_for_screen_text_or_timeout,
    wait_or_timeout,
)

__all__ = [
    "AnsiColor",
    "BRIEF_PAUSE",
    "CTRL_C",
    "CTRL_D",
    "CTRL_J",
    "CTRL_M",
    "CTRL_Z",
    "DEFAULT_KEY_MODES",
    "ENTER",
    "ESCAPE",
    "ExecutionOrchestrator",
    "ExecutionResult",
    "ExitStatus",
    "FocusIn",
    "FocusOut",
    "FunctionKey",
    "HarnessConfig",
    "HeadlessTerminal",
    "IdentityGenerator",
    "Key",
    "KeyBatch",
    "KeyEncodeModes",
    "KeyEncoder",
    "KeyEncodingError",
    "KeyPress",
    "KeyboardEncoding",
    "KittyTransport",
    "Modifiers",
    "MouseButton",
    "MouseDrag",
    "MouseMove",
    "MousePress",
    "MouseRelease",
    "MouseScroll",
    "ParseWarning",
    "Paste",
    "ReplayEvent",
    "ReplayTiming",
    "Resize",
    "SHIFT_TAB",
    "ScrollDirection",
    "Snapshot",
    "TAB",
    "TerminalKeyEncoder",
    "TerminalSize",
    "TimedSample",
    "Transport",
    "TransportError",
    "WaitTimeout",
    "WarningCollector",
    "apply_env_overrides",
    "best_effort",
    "clean_trailing_whitespace",
    "cleanup_test_log",
    "create_env_wrapper",
    "create_mock_executable",
    "create_test_log",
    "encode_key",
    "encode_key_name",
    "encode_mouse_drag",
    "encode_mouse_move",
    "encode_mouse_press",
    "encode_mouse_release",
    "encode_mouse_scroll",
    "extract_colors",
    "extract_row_colors",
    "extract_row_colors_parsed",
    "fg_color_at_text",
    "find_horizontal_separator_row",
    "find_separator_cols_at_row",
    "find_separator_rows_at_col",
    "find_vertical_separator_col",
    "get_logger",
    "kitty_available",
    "load_config",
    "load_recording",
    "parse_key_name",
    "parse_mock_log",
    "parse_recording",
    "pause_briefly",
    "read_test_log",
    "replay",
    "replay_recording",
    "run_with_timeout",
    "sample_rapidly",
    "sample_screen_rapidly",
    "send_alt_key",
    "send_keys",
    "send_mouse_click",
    "send_mouse_drag",
    "send_mouse_drag_with_steps",
    "send_mouse_move",
    "send_mouse_press",
    "send_mouse_release",
    "send_mouse_scroll",
    "setup_logging",
    "should_use_panel",
    "split_raw_and_clean",
    "split_tokens",
    "strip_escape_codes",
    "type_and_execute",
    "type_string",
    "wait_for_clean_contains",
    "wait_for_file",
    "wait_for_log_line",
    "wait_for_ready_marker",
    "wait_for_screen_text",
    "wait_for_screen_text_clean",
    "wait_for_screen_text_clean_or_timeout",
    "wait_for_screen_text_or_timeout",
    "wait_or_timeout",
]
