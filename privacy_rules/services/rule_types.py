"""
规则枚举配置
动作类型与数据类别：稳定的枚举键 -> 展示标签
"""
from enum import Enum
from typing import Dict, List


class ActionType(str, Enum):
    """脱敏动作"""
    MASK = "mask"
    REMOVE = "remove"
    HASH = "hash"
    REPLACE = "replace"


class DataType(str, Enum):
    """数据类别"""
    BANK_ACCOUNTS = "bank_accounts"
    CREDIT_CARD_NUMBERS = "credit_card_numbers"
    PASSWORDS = "passwords"
    IP_ADDRESSES = "ip_addresses"
    EMAIL_ADDRESSES = "email_addresses"
    IMEI_NUMBERS = "imei_numbers"
    MAC_ADDRESSES = "mac_addresses"
    UUIDS = "uuids"
    PEM_KEYS = "pem_keys"
    URL_AUTH = "url_auth"
    US_SSN = "us_ssn"
    USER_PATH = "user_path"


ACTION_TYPE_LABELS: Dict[ActionType, str] = {
    ActionType.MASK: "Mask",
    ActionType.REMOVE: "Remove",
    ActionType.HASH: "Hash",
    ActionType.REPLACE: "Replace",
}

DATA_TYPE_LABELS: Dict[DataType, str] = {
    DataType.BANK_ACCOUNTS: "Bank accounts",
    DataType.CREDIT_CARD_NUMBERS: "Credit card numbers",
    DataType.PASSWORDS: "Passwords",
    DataType.IP_ADDRESSES: "IP addresses",
    DataType.EMAIL_ADDRESSES: "Email addresses",
    DataType.IMEI_NUMBERS: "IMEI numbers",
    DataType.MAC_ADDRESSES: "MAC addresses",
    DataType.UUIDS: "UUIDs",
    DataType.PEM_KEYS: "PEM keys",
    DataType.URL_AUTH: "Auth in URL",
    DataType.US_SSN: "US social security numbers",
    DataType.USER_PATH: "Usernames in filepaths",
}


def get_action_type_label(action: ActionType) -> str:
    """获取动作的展示标签"""
    return ACTION_TYPE_LABELS[ActionType(action)]


def get_data_type_label(data: DataType) -> str:
    """获取数据类别的展示标签"""
    return DATA_TYPE_LABELS[DataType(data)]


def get_action_type_options() -> List[Dict[str, str]]:
    """
    生成动作下拉选项

    Returns:
        [{"value": ..., "label": ...}]，顺序与枚举定义一致
    """
    return [{"value": item.value, "label": get_action_type_label(item)} for item in ActionType]


def get_data_type_options() -> List[Dict[str, str]]:
    """生成数据类别下拉选项"""
    return [{"value": item.value, "label": get_data_type_label(item)} for item in DataType]
