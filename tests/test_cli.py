import pytest

from kfmcli.main import main
from libkfm.config import ToolConfig
from libkfm.model import KfmFile, KfmHeader
from libkfm.reader import read_kfm
from libkfm.text import dump_yaml, load_yaml
from libkfm.writer import write_kfm

from samples import connected_body, rich_file


@pytest.fixture
def kfm_path(tmp_path):
    p = tmp_path / "inventor_broombot.kfm"
    write_kfm(KfmFile(header=KfmHeader(version=2), body=connected_body()), str(p))
    return p


def test_convert_both_ways(kfm_path, tmp_path):
    assert main(["convert", "-i", str(kfm_path)]) == 0
    yaml_path = tmp_path / "inventor_broombot.yaml"
    assert load_yaml(str(yaml_path)).body == connected_body()

    out = tmp_path / "again.kfm"
    assert main(["convert", "-i", str(yaml_path), "-o", str(out)]) == 0
    assert out.read_bytes() == kfm_path.read_bytes()


def test_convert_forced_byte_order(kfm_path, tmp_path):
    out = tmp_path / "be.kfm"
    assert main(["convert", "-i", str(kfm_path), "-o", str(out), "--byte-order", "big"]) == 0
    k = read_kfm(str(out))
    assert k.header.is_little_endian is False
    assert k.body == connected_body()


def test_patch_in_place(kfm_path, tmp_path):
    patch = tmp_path / "p.yaml"
    patch.write_text("anims:\n- delete: {id: 2}\n", encoding="utf-8")
    assert main(["patch", "-s", str(kfm_path), "-p", str(patch)]) == 0

    body = read_kfm(str(kfm_path)).body
    assert [a.id for a in body.anims] == [0, 1, 3]
    assert all(t.id != 2 for a in body.anims for t in a.trans)


def test_failed_patch_does_not_write(kfm_path, tmp_path):
    before = kfm_path.read_bytes()
    patch = tmp_path / "p.yaml"
    patch.write_text("anims:\n- delete: {id: 2}\n- add: {id: 0, path: x.kf, index: 0}\n", encoding="utf-8")
    assert main(["patch", "-s", str(kfm_path), "-p", str(patch)]) == 1
    assert kfm_path.read_bytes() == before


def test_malformed_patch_exits_cleanly(kfm_path, tmp_path):
    before = kfm_path.read_bytes()
    patch = tmp_path / "p.yaml"
    patch.write_text("anims:\n- delete: {id: \"²\"}\n", encoding="utf-8")
    assert main(["patch", "-s", str(kfm_path), "-p", str(patch)]) == 1
    assert kfm_path.read_bytes() == before


def test_build_writes_kfm_and_header(tmp_path):
    src = tmp_path / "inventor_broombot.yaml"
    dump_yaml(KfmFile(header=KfmHeader(version=2), body=connected_body()), str(src))

    out_dir = tmp_path / "out"
    out_dir.mkdir()
    assert main(["build", "-i", str(src), "-d", str(out_dir)]) == 0
    assert read_kfm(str(out_dir / "inventor_broombot.kfm")).body == connected_body()
    header = (out_dir / "inventor_broombot.h").read_text(encoding="utf-8")
    assert "namespace inventor_broombot_Anim" in header
    assert "MECH_GUNBOT_H_ONHIT = 3\n" in header


def test_build_rejects_missing_dir(kfm_path, tmp_path):
    with pytest.raises(SystemExit):
        main(["build", "-i", str(kfm_path), "-d", str(tmp_path / "nope")])


def test_summary_and_verify(tmp_path):
    p = tmp_path / "r.kfm"
    write_kfm(rich_file(little=False), str(p))
    assert main(["summary", str(p)]) == 0
    assert main(["-q", "verify-roundtrip", str(p)]) == 0


def test_verify_roundtrip_via_yaml(tmp_path):
    p = tmp_path / "r.kfm"
    write_kfm(rich_file(little=True), str(p))
    assert main(["-q", "verify-roundtrip", "--via-yaml", str(p)]) == 0


def test_verify_roundtrip_reports_diff(tmp_path):
    p = tmp_path / "r.kfm"
    write_kfm(rich_file(), str(p))
    # trailing bytes are ignored on read, so the rewrite is shorter
    p.write_bytes(p.read_bytes() + b"\x00\x00")
    assert main(["-q", "verify-roundtrip", str(p)]) == 1
    assert main(["-q", "verify-roundtrip", "--via-yaml", str(p)]) == 1


def test_bad_file_reports_error(tmp_path):
    p = tmp_path / "bad.kfm"
    p.write_bytes(b"\x02not a kfm file at all, not even close......")
    assert main(["summary", str(p)]) == 1
    assert main(["summary", str(tmp_path / "missing.kfm")]) == 1


def test_config_from_env():
    cfg = ToolConfig.from_env({"KFM_LOG_LEVEL": "debug", "KFM_BYTE_ORDER": "Big", "KFM_ATOMIC_PATCH": "1"})
    assert cfg == ToolConfig(log_level="DEBUG", byte_order="big", atomic_patch=True)
    assert ToolConfig.from_env({}) == ToolConfig()
    with pytest.raises(ValueError):
        ToolConfig.from_env({"KFM_BYTE_ORDER": "middle"})
