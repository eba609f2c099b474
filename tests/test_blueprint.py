"""Tests for blueprint planning."""

import pytest

from kforge.core.blueprint import PATCHING_GUIDANCE, plan_blueprint
from kforge.core.profiles import classify
from kforge.core.regions import CandidateRegion


def _plan(offset=4096, length=512, tag="gzip", directory="/fw", filename="vmlinuz"):
    region = CandidateRegion(format_tag=tag, offset=offset, length=length)
    return plan_blueprint(directory, filename, region, classify(tag))


@pytest.mark.parametrize("offset,length", [(0, 0), (4096, 512), (0x1234567, 0xABCDEF), (1, 2**40)])
def test_blueprint_has_eight_ordered_steps(offset, length):
    blueprint = _plan(offset=offset, length=length)
    assert [step.step_number for step in blueprint.steps] == list(range(1, 9))


def test_step_descriptions_in_order():
    blueprint = _plan()
    assert [step.description for step in blueprint.steps] == [
        "Extraction",
        "Decompression",
        "Backup Original Files",
        "DIY Vmlinux Patching",
        "Recompression",
        "Size Verification",
        "Zero Out Original Section",
        "Overwrite Original Section",
    ]


def test_extraction_uses_hex_offset_and_length():
    extraction = _plan(offset=4096, length=512).steps[0].command_text
    assert extraction == (
        "$ cd /fw\n"
        "$ dd if=vmlinuz of=vmlinux.gz ibs=1 skip=$[0x1000] count=$[0x200]"
    )


def test_decompress_and_recompress_use_profile_commands():
    blueprint = _plan(tag="lz4")
    assert blueprint.steps[1].command_text == "$ lz4 -k -d vmlinux.lz4"
    assert blueprint.steps[4].command_text == "$ lz4 -k -9 vmlinux"


def test_backup_copies_payload_and_image():
    backup = _plan(filename="zImage").steps[2].command_text
    assert backup == "$ cp vmlinux vmlinux.orig\n$ cp zImage zImage.orig"


def test_patching_guidance_never_varies():
    first = _plan(offset=1, length=2, tag="xz", directory="/a", filename="a.bin")
    second = _plan(offset=99, length=77, tag="lzfse", directory="/b", filename="b.img")
    assert first.steps[3].command_text == PATCHING_GUIDANCE
    assert second.steps[3].command_text == PATCHING_GUIDANCE
    assert "memcmp()" in PATCHING_GUIDANCE


def test_size_verification_compares_against_original_length():
    text = _plan(length=0x3F00, tag="zstd").steps[5].command_text
    assert text.startswith("$ wc -c vmlinux.zst | awk '{printf \"0x%x\\n\", $1}'\n\n")
    assert "Output must be <= 0x3f00" in text
    assert "recompress again" in text


def test_zero_and_overwrite_target_original_range():
    blueprint = _plan(offset=0x8000, length=0x100, filename="kernel.bin")
    assert blueprint.steps[6].command_text == (
        "$ dd if=/dev/zero of=kernel.bin bs=1 seek=$[0x8000] count=$[0x100] conv=notrunc"
    )
    assert blueprint.steps[7].command_text == (
        "$ dd if=vmlinux.gz of=kernel.bin bs=1 seek=$[0x8000] conv=notrunc"
    )


def test_lzfse_blueprint_uses_explicit_io_flags():
    blueprint = _plan(tag="lzfse")
    assert blueprint.steps[1].command_text == "$ lzfse -decode -o vmlinux -i vmlinux.lzfse"
    assert blueprint.steps[4].command_text == "$ lzfse -encode -o vmlinux.lzfse -i vmlinux"


def test_title_reports_decimal_values():
    assert _plan(offset=4096, length=512).title == (
        "Kernel Modification Blueprint (Type: gzip, Offset: 4096, Size: 512 bytes)"
    )


def test_blueprint_is_deterministic():
    assert [s.command_text for s in _plan().steps] == [s.command_text for s in _plan().steps]
    assert _plan() == _plan()


def test_paths_with_shell_metacharacters_are_quoted():
    blueprint = _plan(directory="/fw dir", filename="my image;rm.bin")
    steps = {step.step_number: step.command_text for step in blueprint.steps}
    assert steps[1].startswith("$ cd '/fw dir'\n$ dd if='my image;rm.bin' of=vmlinux.gz ")
    assert steps[3].endswith("$ cp 'my image;rm.bin' 'my image;rm.bin.orig'")
    assert "of='my image;rm.bin' bs=1" in steps[7]
    assert "of='my image;rm.bin' bs=1" in steps[8]


def test_plain_paths_are_left_unquoted():
    steps = _plan(directory="/fw", filename="vmlinuz").steps
    assert steps[0].command_text.startswith("$ cd /fw\n$ dd if=vmlinuz of=")


def test_negative_values_rejected():
    with pytest.raises(ValueError):
        _plan(offset=-1)
    with pytest.raises(ValueError):
        _plan(length=-5)
