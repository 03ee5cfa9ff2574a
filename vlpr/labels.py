"""
Label tables for the attribute classifier and the plate OCR model.

The tables are positional: index i of a table is the label of output i of the
matching trained model, so they are kept as tuples and never as mappings.
"""
from typing import Tuple

COLOR_NAMES: Tuple[str, ...] = (
    "white", "gray", "yellow", "red", "green", "blue", "black",
)

VEHICLE_TYPES: Tuple[str, ...] = (
    "car", "van", "truck", "bus",
)

# Digits, then region codes (ending with the police marker), then A-Z
PLATE_ALPHABET: Tuple[str, ...] = (
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "<Anhui>", "<Beijing>", "<Chongqing>", "<Fujian>",
    "<Gansu>", "<Guangdong>", "<Guangxi>", "<Guizhou>",
    "<Hainan>", "<Hebei>", "<Heilongjiang>", "<Henan>",
    "<HongKong>", "<Hubei>", "<Hunan>", "<InnerMongolia>",
    "<Jiangsu>", "<Jiangxi>", "<Jilin>", "<Liaoning>",
    "<Macau>", "<Ningxia>", "<Qinghai>", "<Shaanxi>",
    "<Shandong>", "<Shanghai>", "<Shanxi>", "<Sichuan>",
    "<Tianjin>", "<Tibet>", "<Xinjiang>", "<Yunnan>",
    "<Zhejiang>", "<police>",
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J",
    "K", "L", "M", "N", "O", "P", "Q", "R", "S", "T",
    "U", "V", "W", "X", "Y", "Z",
)
