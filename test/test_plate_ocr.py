"""
Tests for plate text decoding and the OCR stage.
"""
import asyncio

import numpy as np

from conftest import make_detections, plate_sequence
from vlpr.dnn.plate_ocr import decode_sequence, sequence_indicator
from vlpr.labels import COLOR_NAMES, PLATE_ALPHABET, VEHICLE_TYPES
from vlpr.types import Rectangle


def test_label_tables():
    assert len(COLOR_NAMES) == 7
    assert len(VEHICLE_TYPES) == 4
    assert len(PLATE_ALPHABET) == 70
    assert PLATE_ALPHABET[:10] == tuple("0123456789")
    assert PLATE_ALPHABET[-26:] == tuple("ABCDEFGHIJKLMNOPQRSTUVWXYZ")


def test_decode_single_digit():
    assert decode_sequence([5]) == "5"


def test_decode_region_codes():
    assert decode_sequence([10]) == "<Anhui>"
    assert decode_sequence([43]) == "<police>"
    assert decode_sequence([44]) == "A"


def test_decode_skips_negative_indices():
    assert decode_sequence([-1, 1, -1, -1, 2, 44, -1]) == "12A"


def test_decode_empty_and_all_negative():
    assert decode_sequence([]) == ""
    assert decode_sequence([-1.0] * 88) == ""


def test_decode_is_pure():
    sequence = np.array([11, 44, 45, 1, 2, 3, 4, 5, -1], dtype=np.float32)
    assert decode_sequence(sequence) == decode_sequence(sequence) == "<Beijing>AB12345"


def test_sequence_indicator():
    values = sequence_indicator()
    assert values.shape == (88, 1)
    assert values.dtype == np.float32
    assert values[0, 0] == 0.0
    assert np.all(values[1:] == 1.0)


def test_ocr_primed_once_after_load(system, engine, image):
    asyncio.run(system.init())
    asyncio.run(system.init())

    engine.detections = make_detections([[0, 2, 0.9, 10, 10, 59, 29]])
    system.detect(image)
    system.detect(image)

    seq_inputs = [entry for entry in engine.set_inputs if entry[1] == "seq_ind"]
    assert len(seq_inputs) == 1
    model_name, _, tensor = seq_inputs[0]
    assert "license-plate-recognition" in model_name
    np.testing.assert_array_equal(tensor, sequence_indicator())
    # Later forward passes still see the bound indicator
    assert "seq_ind" in system.ocr_slot.handle.bound_inputs


def test_plate_ocr_stage(ready_system, engine, image):
    engine.plate_values = plate_sequence([-1, 12, 44, 1, -1, 2, 3])
    text = ready_system.plate_ocr.decode(image, Rectangle(40, 50, 20, 10))

    assert text == "<Chongqing>A123"
    data_inputs = [entry for entry in engine.set_inputs if entry[1] == "data"]
    assert data_inputs[-1][2].shape == (1, 3, 24, 94)
    assert data_inputs[-1][2].dtype == np.float32
