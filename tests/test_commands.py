import pytest

from fake_miner import PASSWORD, authenticated_device, plain
from whatsminer_api import commands

OK = {"STATUS": "S", "When": 1, "Code": 131, "Msg": "", "Description": ""}


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_privileged(host, port, password, cmd, params=None, **kwargs):
        calls.append((cmd, params, kwargs))
        return OK

    def fake_plain(host, port, cmd, params=None, **kwargs):
        calls.append((cmd, params, kwargs))
        return OK

    monkeypatch.setattr(commands, "send_privileged_command", fake_privileged)
    monkeypatch.setattr(commands, "send_command", fake_plain)
    return calls


def test_summary_against_fake_device(fake_miner):
    miner = fake_miner(lambda request, m: plain(OK))

    assert commands.summary(miner.host, miner.port) == OK
    assert miner.connections == 1


def test_reboot_against_fake_device(fake_miner):
    miner = fake_miner(authenticated_device(OK))

    assert commands.reboot(miner.host, miner.port, PASSWORD) == OK
    assert miner.connections == 2
    assert set(miner.decrypted) == {"cmd", "token"}


def test_get_miner_info_default_fields(sent):
    commands.get_miner_info("h", 1)
    assert sent[0][0] == "get_miner_info"
    assert sent[0][1] == {"info": commands.DEFAULT_MINER_INFO}


def test_update_pools_skips_unset_fields(sent):
    commands.update_pools("h", 1, "pw", pool1="stratum+tcp://a:3333", worker1="w.1", passwd1="x")
    assert sent == [("update_pools", {"pool1": "stratum+tcp://a:3333", "worker1": "w.1", "passwd1": "x"}, {})]


def test_boolean_flags_are_sent_as_strings(sent):
    commands.power_off("h", 1, "pw", respbefore=False)
    commands.pre_power_on("h", 1, "pw", complete=True, msg="adjust complete")
    assert sent[0][1] == {"respbefore": "false"}
    assert sent[1][1] == {"complete": "true", "msg": "adjust complete"}


def test_set_led_modes(sent):
    commands.set_led("h", 1, "pw")
    commands.set_led("h", 1, "pw", color="red", period=60, duration=20, start=0)
    assert sent[0][1] == {"param": "auto"}
    assert sent[1][1] == {"color": "red", "period": 60, "duration": 20, "start": 0}
    with pytest.raises(ValueError):
        commands.set_led("h", 1, "pw", color="blue")
    with pytest.raises(ValueError):
        commands.set_led("h", 1, "pw", color="green", period=60)
    assert len(sent) == 2


def test_net_config_modes(sent):
    commands.net_config("h", 1, "pw")
    commands.net_config("h", 1, "pw", ip="10.0.0.9", mask="255.255.255.0", gate="10.0.0.1", dns="1.1.1.1", hostname="rig9")
    assert sent[0][1] == {"param": "dhcp"}
    assert sent[1][1] == {"ip": "10.0.0.9", "mask": "255.255.255.0", "gate": "10.0.0.1", "dns": "1.1.1.1", "host": "rig9"}


def test_load_log_maps_remote_syslog_fields(sent):
    commands.load_log("h", 4028, "pw", log_ip="10.0.0.3", log_port=514)
    assert sent[0][1] == {"ip": "10.0.0.3", "port": "514", "proto": "udp"}


def test_percent_ranges(sent):
    commands.set_power_pct("h", 1, "pw", 80)
    commands.set_target_freq("h", 1, "pw", -10)
    assert sent[0][1] == {"percent": "80"}
    assert sent[1][1] == {"percent": "-10"}
    with pytest.raises(ValueError):
        commands.set_power_pct("h", 1, "pw", 101)
    with pytest.raises(ValueError):
        commands.set_target_freq("h", 1, "pw", -101)


def test_extra_options_pass_through(sent):
    commands.set_zone("h", 1, "pw", timezone="CST-8", zonename="Asia/Shanghai", check=True, timeout=3)
    assert sent[0] == ("set_zone", {"timezone": "CST-8", "zonename": "Asia/Shanghai"}, {"check": True, "timeout": 3})


def test_catalog_is_exposed_by_the_package():
    import whatsminer_api

    assert whatsminer_api.commands.reboot is commands.reboot
