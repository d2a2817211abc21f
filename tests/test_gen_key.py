from scripts import gen_key


def test_writes_new_env_file(tmp_path, capsys):
    env_file = tmp_path / ".env"

    gen_key.main(["--size", "32", "--env", str(env_file)])

    lines = env_file.read_text().splitlines()
    assert len(lines) == 1
    name, value = lines[0].split("=")
    assert name == "PADORA_KEY"
    assert len(bytes.fromhex(value)) == 32
    assert "256-bit key saved" in capsys.readouterr().out


def test_replaces_existing_key_and_keeps_other_lines(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PADORA_NUM_BLOCKS=5\nPADORA_KEY=00\n")

    gen_key.write_key(env_file, bytes(16))

    assert env_file.read_text() == "PADORA_NUM_BLOCKS=5\nPADORA_KEY=" + "00" * 16 + "\n"
