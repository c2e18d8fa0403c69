from xrpzip_wallet.state_manager import WalletState


def test_wallet_state_loads_from_missing_file(tmp_path):
    path = tmp_path / "state.json"
    state = WalletState.load(path)
    assert state.address is None


def test_wallet_state_save_and_load(tmp_path):
    path = tmp_path / "nested" / "state.json"
    WalletState(address="rOwner").save(path)

    loaded = WalletState.load(path)
    assert loaded.address == "rOwner"
    assert "seed" not in path.read_text(encoding="utf-8")


def test_wallet_state_ignores_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert WalletState.load(path).address is None


def test_wallet_state_clear_removes_file(tmp_path):
    path = tmp_path / "state.json"
    WalletState(address="rOwner").save(path)
    WalletState.clear(path)
    assert not path.exists()
    WalletState.clear(path)
