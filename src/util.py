import copy
import enum
import json
import logging
import os

import orjson

import kana

logger = logging.getLogger(__name__)


# ─── Charsets ─────────────────────────────────────────────────────────

class Encoding(enum.Enum):
    """Charsets an SKK jisyo or skkserv may speak. Values are Python codec names."""
    UTF8 = 'utf-8'
    EUCJP = 'euc-jp'
    SJIS = 'shift_jis'

    @classmethod
    def from_name(cls, name):
        """
        Resolve a config spelling of a charset.

        Accepts the member name ("EUCJP"), the codec name ("euc-jp") and the
        usual variants ("eucjp", "shift-jis", "sjis", "utf8").

        Raises:
            LookupError: If the name is not one of the supported charsets
        """
        if isinstance(name, cls):
            return name
        normalized = str(name).strip().lower().replace('-', '').replace('_', '')
        for member in cls:
            if normalized in (member.name.lower(), member.value.replace('-', '').replace('_', '')):
                return member
        raise LookupError(f'unsupported jisyo encoding: {name!r}')


# Order matters: EUC-JP and Shift_JIS byte ranges overlap, UTF-8 is the strictest
_DETECTION_ORDER = (Encoding.UTF8, Encoding.EUCJP, Encoding.SJIS)


def detect_encoding(data):
    """
    Guess the charset of raw jisyo bytes.

    Each candidate charset is tried in turn and the first one that decodes
    the whole input wins. The guess may be wrong for short or mixed input;
    EUC-JP, the historical SKK default, is returned when nothing fits.

    Args:
        data: bytes read from a jisyo file

    Returns:
        Encoding: The detected charset
    """
    for encoding in _DETECTION_ORDER:
        try:
            data.decode(encoding.value)
        except UnicodeDecodeError:
            continue
        logger.debug(f'detect_encoding: {encoding.value}')
        return encoding
    logger.debug('detect_encoding: no charset decodes cleanly, assuming euc-jp')
    return Encoding.EUCJP


# ─── Paths ────────────────────────────────────────────────────────────

def get_package_name():
    '''
    returns 'pskk-jisyo'
    '''
    return 'pskk-jisyo'


def get_version():
    return '0.1.0'


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/pskk-jisyo
    '''
    # PyGObject is only required to locate the per-user config directory
    from gi.repository import GLib
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def get_default_config_path():
    return os.path.join(get_user_config_dir(), 'config.json')


# ─── Configuration ────────────────────────────────────────────────────

DEFAULT_CONFIG = {
    "dictionaries": {
        # each entry: "path" (charset auto-detected) or ["path", "euc-jp"]
        "global": [],
        "user": {
            "path": "",
            "rank_path": "",
        },
    },
    "skk_server": {
        "enabled": False,
        "host": "localhost",
        "port": 1178,
        "request_encoding": "euc-jp",
        "response_encoding": "euc-jp",
        "timeout": 5.0,
    },
    "immediately_jisyo_rw": True,
    "kana_table": "",
    "debug": False,
}


def get_default_config_data():
    return copy.deepcopy(DEFAULT_CONFIG)


def _same_type(value, default):
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return type(value) == type(default)


def _merge_defaults(config_data, default_config, configfile_path, warnings, section=''):
    for k in default_config:
        name = f'{section}.{k}' if section else k
        if k not in config_data:
            warning_msg = f'The key "{name}" was not found in {configfile_path} . Using the default value'
            logger.warning(warning_msg)
            warnings.append(warning_msg)
            config_data[k] = copy.deepcopy(default_config[k])
        elif not _same_type(config_data[k], default_config[k]):
            warning_msg = f'Type mismatch found for the key "{name}" in {configfile_path}. Replacing the value with the default'
            logger.warning(warning_msg)
            warnings.append(warning_msg)
            config_data[k] = copy.deepcopy(default_config[k])
        elif isinstance(default_config[k], dict):
            _merge_defaults(config_data[k], default_config[k], configfile_path, warnings, name)


def get_config_data(configfile_path=None):
    '''
    Load config.json and repair it against DEFAULT_CONFIG.

    When the file is not present (e.g., on first run), the default config is
    written there. Unparseable JSON falls back to (but does not overwrite)
    the default config.

    Args:
        configfile_path: Path to config.json. Defaults to the user config dir.

    Returns:
        tuple: (config_data, warnings_string) where warnings_string is empty if no warnings
    '''
    if configfile_path is None:
        configfile_path = get_default_config_path()
    default_config = get_default_config_data()

    if not os.path.exists(configfile_path):
        warning_msg = f'{configfile_path} is not found. Writing the default config ..'
        logger.warning(warning_msg)
        save_config_data(default_config, configfile_path)
        return default_config, warning_msg

    try:
        with open(configfile_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except (OSError, json.decoder.JSONDecodeError) as e:
        logger.error(f'Error loading {configfile_path}')
        logger.error(e)
        return default_config, f'{configfile_path} could not be loaded. Using the default config'

    if not isinstance(config_data, dict):
        warning_msg = f'{configfile_path} does not hold a JSON object. Using the default config'
        logger.error(warning_msg)
        return default_config, warning_msg

    warnings = []
    _merge_defaults(config_data, default_config, configfile_path, warnings)
    return config_data, "\n".join(warnings)


def save_config_data(config_data, configfile_path=None):
    '''
    Save config data.

    Args:
        config_data: Dictionary containing configuration data to save
        configfile_path: Destination path. Defaults to the user config dir.

    Returns:
        bool: True if save was successful, False otherwise
    '''
    if configfile_path is None:
        configfile_path = get_default_config_path()

    try:
        config_dir = os.path.dirname(configfile_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)
        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, ensure_ascii=False, indent=2)
        logger.info(f'Configuration saved successfully to {configfile_path}')
        return True
    except OSError as e:
        logger.error(f'Error saving config to {configfile_path}')
        logger.error(e)
        return False


def normalize_dictionary_entry(entry):
    """
    Normalize one "dictionaries.global" config entry.

    Args:
        entry: "path" or ["path", "encoding"]; an empty encoding means auto-detect

    Returns:
        tuple: (path, encoding_name_or_None)

    Raises:
        ValueError: If the entry has neither shape
    """
    if isinstance(entry, str):
        return entry, None
    if isinstance(entry, (list, tuple)) and len(entry) == 2 and all(isinstance(e, str) for e in entry):
        path, encoding = entry
        return path, (encoding or None)
    raise ValueError(f'invalid global dictionary entry: {entry!r}')


def load_kana_table(config):
    '''
    Return the kana table configured under "kana_table".

    An empty value selects the built-in romaji table. Otherwise the value is
    the path of a PSKK layout JSON file; when it cannot be loaded the
    built-in table is used.
    '''
    layout_path = config.get('kana_table', '')
    if not layout_path:
        return kana.DEFAULT_KANA_TABLE
    try:
        with open(os.path.expanduser(layout_path), 'rb') as f:
            layout_data = orjson.loads(f.read())
        table = kana.kana_table_from_layout(layout_data)
        logger.info(f'kana table loaded: {layout_path} ({len(table)} rows)')
        return table
    except (OSError, orjson.JSONDecodeError) as e:
        logger.error(f'Error in loading kana table file: {layout_path}')
        logger.error(e)
    return kana.DEFAULT_KANA_TABLE
