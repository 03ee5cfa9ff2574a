"""
Tests for the OpenVINO engine against a small IR network shaped like the plate recognizer:
inputs "data" [1,3,24,94] and "seq_ind" [88,1], outputs "decode" and "seq_out".
"""
import asyncio

import numpy as np
import pytest

from conftest import OfflineProvisioning
from vlpr.catalog import ModelArtifact
from vlpr.config import VLPRConfig
from vlpr.dnn import OpenVINOEngine, create_engine
from vlpr.dnn.model_slot import ModelSlot
from vlpr.dnn.plate_ocr import prime_ocr, sequence_indicator
from vlpr.exceptions import ModelLoadingError

DATA_SHAPE = (1, 3, 24, 94)
SEQ_SHAPE = (88, 1)


def _dims(shape):
    return "".join(f"<dim>{d}</dim>" for d in shape)


def _abs_branch(first_id, input_name, output_name, shape):
    """Parameter -> Abs -> Result, as three IR layers"""
    dims = _dims(shape)
    return f"""
        <layer id="{first_id}" name="{input_name}" type="Parameter" version="opset1">
            <data shape="{",".join(str(d) for d in shape)}" element_type="f32"/>
            <output><port id="0" precision="FP32" names="{input_name}">{dims}</port></output>
        </layer>
        <layer id="{first_id + 1}" name="{output_name}" type="Abs" version="opset1">
            <input><port id="0" precision="FP32">{dims}</port></input>
            <output><port id="1" precision="FP32" names="{output_name}">{dims}</port></output>
        </layer>
        <layer id="{first_id + 2}" name="{output_name}/sink_port_0" type="Result" version="opset1">
            <input><port id="0" precision="FP32">{dims}</port></input>
        </layer>"""


def _edges(first_id):
    return f"""
        <edge from-layer="{first_id}" from-port="0" to-layer="{first_id + 1}" to-port="0"/>
        <edge from-layer="{first_id + 1}" from-port="1" to-layer="{first_id + 2}" to-port="0"/>"""


def write_ir(folder, name="license-plate-recognition-barrier-0001"):
    """Write an IR v11 .xml/.bin pair and return (weights_path, config_path)"""
    xml = f"""<?xml version="1.0"?>
<net name="{name}" version="11">
    <layers>{_abs_branch(0, "data", "decode", DATA_SHAPE)}{_abs_branch(3, "seq_ind", "seq_out", SEQ_SHAPE)}
    </layers>
    <edges>{_edges(0)}{_edges(3)}
    </edges>
</net>
"""
    config_path = folder / f"{name}.xml"
    weights_path = folder / f"{name}.bin"
    config_path.write_text(xml)
    # The network has no constants; the weights file only has to exist
    weights_path.write_bytes(b"\x00" * 8)
    return str(weights_path), str(config_path)


@pytest.fixture
def ir_model(tmp_path):
    return write_ir(tmp_path)


def test_default_backend_loads_ir(tmp_path, ir_model):
    config = VLPRConfig(app_dir=str(tmp_path), models_dir=str(tmp_path / "models"))
    engine = create_engine(config)
    assert isinstance(engine, OpenVINOEngine)

    handle = engine.load(*ir_model)

    assert handle.input_names == ["data", "seq_ind"]
    assert handle.output_names == ["decode", "seq_out"]


def test_named_inputs_and_outputs(ir_model):
    engine = OpenVINOEngine()
    handle = engine.load(*ir_model)
    prime_ocr(engine, handle)
    data = -np.ones(DATA_SHAPE, dtype=np.float32)

    (decode,) = engine.run(handle, {"data": data}, ["decode"])
    (decode_again, seq_out) = engine.run(handle, {"data": data * 2}, ["decode", "seq_out"])

    np.testing.assert_array_equal(decode, np.ones(DATA_SHAPE))
    np.testing.assert_array_equal(decode_again, np.full(DATA_SHAPE, 2.0))
    # seq_ind was set once, after loading, and is still fed
    np.testing.assert_array_equal(seq_out, sequence_indicator())


def test_unnamed_input_and_outputs_use_model_order(ir_model):
    engine = OpenVINOEngine()
    handle = engine.load(*ir_model)
    engine.set_input(handle, np.ones(SEQ_SHAPE), "seq_ind")

    outputs = engine.run(handle, {None: np.full(DATA_SHAPE, -3.0)})

    assert [o.shape for o in outputs] == [DATA_SHAPE, SEQ_SHAPE]
    assert outputs[0].max() == 3.0


def test_missing_files_raise(tmp_path, ir_model):
    weights, config = ir_model
    with pytest.raises(ModelLoadingError):
        OpenVINOEngine().load(str(tmp_path / "missing.bin"), config)
    with pytest.raises(ModelLoadingError):
        OpenVINOEngine().load(weights, str(tmp_path / "missing.xml"))


def test_malformed_ir_raises(tmp_path):
    (tmp_path / "broken.xml").write_text("<net>")
    (tmp_path / "broken.bin").write_bytes(b"")
    with pytest.raises(ModelLoadingError):
        OpenVINOEngine().load(str(tmp_path / "broken.bin"), str(tmp_path / "broken.xml"))


def test_release(ir_model):
    engine = OpenVINOEngine()
    handle = engine.load(*ir_model)
    prime_ocr(engine, handle)

    engine.release(handle)

    assert handle.released
    assert handle.backend is None
    assert handle.bound_inputs == {}


def test_slot_loads_ir_pair_with_openvino(tmp_path):
    write_ir(tmp_path)
    folder = str(tmp_path)
    artifacts = [
        ModelArtifact("config", None, file_name="license-plate-recognition-barrier-0001.xml"),
        ModelArtifact("weights", None, file_name="license-plate-recognition-barrier-0001.bin"),
    ]
    slot = ModelSlot("ocr", artifacts, folder, OpenVINOEngine(), OfflineProvisioning().factory, prime_ocr)

    handle = asyncio.run(slot.ensure_ready())

    assert handle.config_path.endswith(".xml")
    assert "seq_ind" in handle.bound_inputs
