"""Unit tests for the SQL-facing VectorExtension, without a connection."""

import pytest

from sqlite_vector.codec import decode_raw, encode_raw, is_quantized_format
from sqlite_vector.config import VectorConfig
from sqlite_vector.errors import (
    ConfigurationError,
    DimensionError,
    EmbedderError,
    FormatError,
    VectorError,
)
from sqlite_vector.extension import VectorExtension, parse_json_vector, sql_function
from sqlite_vector.quantization import QuantizationRange


@pytest.fixture
def extension(unit_range: QuantizationRange) -> VectorExtension:
    return VectorExtension(VectorConfig(dim=3, quant_range=unit_range))


class TestParseJsonVector:
    """Tests for JSON array parsing."""

    def test_numbers(self) -> None:
        assert parse_json_vector("[1, 2.5, -3e2]") == [1.0, 2.5, -300.0]

    def test_bytes_input(self) -> None:
        assert parse_json_vector(b"[1]") == [1.0]

    @pytest.mark.parametrize(
        "text",
        ["not json", "{}", '"[1,2,3]"', "[1, true, 3]", '[1, "2", 3]', "[NaN]", "[Infinity]"],
    )
    def test_malformed_input(self, text: str) -> None:
        with pytest.raises(FormatError):
            parse_json_vector(text)


class TestSqlFunctionWrapper:
    """Null propagation and error prefixing at the SQL boundary."""

    def test_null_short_circuits(self) -> None:
        calls = []
        wrapped = sql_function("f")(lambda *args: calls.append(args))
        assert wrapped(None) is None
        assert wrapped(b"x", None) is None
        assert calls == []

    def test_errors_are_prefixed(self) -> None:
        def fail(value: object) -> None:
            raise DimensionError("expected dimension 3, got 2", context={"actual": 2})

        with pytest.raises(DimensionError, match="^my_fn: expected dimension 3") as excinfo:
            sql_function("my_fn")(fail)(b"")
        assert excinfo.value.context == {"actual": 2}
        assert isinstance(excinfo.value.__cause__, DimensionError)

    def test_other_errors_pass_through(self) -> None:
        def fail(value: object) -> None:
            raise KeyError("boom")

        with pytest.raises(KeyError):
            sql_function("my_fn")(fail)(1)


class TestVectorExtension:
    """Tests for the bound core operations."""

    def test_encode(self, extension: VectorExtension) -> None:
        assert decode_raw(extension.encode("[1, 2, 3]")).tolist() == [1.0, 2.0, 3.0]

    def test_encode_dimension_mismatch(self, extension: VectorExtension) -> None:
        with pytest.raises(DimensionError, match="expected dimension 3, got 2"):
            extension.encode("[1, 2]")

    def test_distance_rejects_text(self, extension: VectorExtension) -> None:
        with pytest.raises(FormatError, match="must be a BLOB"):
            extension.distance("abc", encode_raw([1, 2, 3]))

    def test_quantize(self, extension: VectorExtension) -> None:
        blob = extension.quantize(encode_raw([-1.0, 0.0, 1.0]))
        assert is_quantized_format(blob)
        assert len(blob) == 5

    def test_quantize_wrong_length(self, extension: VectorExtension) -> None:
        with pytest.raises(DimensionError, match=r"expected 12 bytes \(dim=3\), got 8"):
            extension.quantize(encode_raw([1.0, 2.0]))

    def test_quantize_without_range(self) -> None:
        extension = VectorExtension(VectorConfig(dim=3))
        with pytest.raises(ConfigurationError, match="quantization not configured"):
            extension.quantize(encode_raw([1.0, 2.0, 3.0]))

    def test_distance_quantized_without_range(self, unit_range: QuantizationRange) -> None:
        blob = VectorExtension(VectorConfig(dim=3, quant_range=unit_range)).quantize(
            encode_raw([0.1, 0.2, 0.3])
        )
        with pytest.raises(ConfigurationError):
            VectorExtension(VectorConfig(dim=3)).distance_quantized(blob, blob)

    def test_embed_without_embedder(self, extension: VectorExtension) -> None:
        with pytest.raises(ConfigurationError, match="no embedder configured"):
            extension.embed("hello")

    def test_embed(self, make_embedder) -> None:
        embedder = make_embedder([0.5, 0.25, 0.125])
        extension = VectorExtension(VectorConfig(dim=3), embedder=embedder)

        assert decode_raw(extension.embed("hello")).tolist() == [0.5, 0.25, 0.125]
        assert embedder.calls == ["hello"]

    def test_embed_dimension_mismatch(self, make_embedder) -> None:
        extension = VectorExtension(VectorConfig(dim=3), embedder=make_embedder([1.0, 2.0]))
        with pytest.raises(DimensionError, match="embedder returned dimension 2, expected 3"):
            extension.embed("hello")

    def test_embed_failure_wrapped(self) -> None:
        class BrokenEmbedder:
            def embed(self, text: str) -> list[float]:
                raise ConnectionError("provider down")

        extension = VectorExtension(VectorConfig(dim=3), embedder=BrokenEmbedder())
        with pytest.raises(EmbedderError, match="provider down") as excinfo:
            extension.embed("hello")
        assert isinstance(excinfo.value.__cause__, ConnectionError)
        assert isinstance(excinfo.value, VectorError)

    def test_embed_non_numeric_members(self, make_embedder) -> None:
        extension = VectorExtension(VectorConfig(dim=1), embedder=make_embedder(["x"]))
        with pytest.raises(EmbedderError, match="embedder failed"):
            extension.embed("hi")

    def test_embed_nested_vector(self, make_embedder) -> None:
        extension = VectorExtension(VectorConfig(dim=1), embedder=make_embedder([[1.0]]))
        with pytest.raises(EmbedderError, match="flat sequence"):
            extension.embed("hi")

    def test_scalar_function_table(self, extension: VectorExtension) -> None:
        names = {name: deterministic for name, _, _, deterministic in extension.scalar_functions()}
        assert names == {
            "vector_encode": True,
            "vector_distance": True,
            "vector_quantize": True,
            "vector_distance_q": True,
            "vector_embed": False,
        }
