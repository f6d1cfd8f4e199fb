# Copyright 2025 iGenius S.p.A
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


import pytest

from tests.fakes import FakeNative
from vcx_agent.core.context import NativeContext
from vcx_agent.exceptions import CollaboratorError, VcxAgentError


class _PaymentSpy:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


@pytest.mark.asyncio
async def test_initialize_sets_up_payment_and_logger():
    native = FakeNative()
    payment = _PaymentSpy()

    ctx = await NativeContext(native, log_level="warn", init_payment=payment).initialize()

    assert ctx.initialized
    assert payment.calls == 1
    assert native.calls == [("init_logger", "warn")]
    assert ctx.native is native


@pytest.mark.asyncio
async def test_native_is_unavailable_before_initialize():
    ctx = NativeContext(FakeNative(), init_payment=_PaymentSpy())
    with pytest.raises(VcxAgentError, match="not initialized"):
        _ = ctx.native


@pytest.mark.asyncio
async def test_double_initialize_raises():
    ctx = await NativeContext(FakeNative(), init_payment=_PaymentSpy()).initialize()
    with pytest.raises(VcxAgentError, match="already initialized"):
        await ctx.initialize()


@pytest.mark.asyncio
async def test_closed_context_cannot_be_reused():
    native = FakeNative()
    ctx = await NativeContext(native, init_payment=_PaymentSpy()).initialize()

    await ctx.close()
    await ctx.close()

    assert native.names().count("shutdown") == 1
    assert not ctx.initialized
    with pytest.raises(VcxAgentError):
        await ctx.initialize()
    with pytest.raises(VcxAgentError):
        _ = ctx.native


@pytest.mark.asyncio
async def test_close_without_initialize_skips_shutdown():
    native = FakeNative()
    await NativeContext(native, init_payment=_PaymentSpy()).close()
    assert native.calls == []


@pytest.mark.asyncio
async def test_async_context_manager_closes_on_error():
    native = FakeNative()

    with pytest.raises(RuntimeError):
        async with NativeContext(native, init_payment=_PaymentSpy()):
            raise RuntimeError("boom")

    assert native.names() == ["init_logger", "shutdown"]


@pytest.mark.asyncio
async def test_use_credentials_serializes_config():
    native = FakeNative()
    async with NativeContext(native, init_payment=_PaymentSpy()) as ctx:
        await ctx.use_credentials({"institution_name": "faber"})

    assert ("init_with_config", {"institution_name": "faber"}) in native.calls


@pytest.mark.asyncio
async def test_native_logger_failure_is_wrapped():
    class _Broken(FakeNative):
        async def init_logger(self, level):
            raise RuntimeError("bad level")

    ctx = NativeContext(_Broken(), init_payment=_PaymentSpy())
    with pytest.raises(CollaboratorError) as excinfo:
        await ctx.initialize()
    assert excinfo.value.operation == "init_logger"
    assert not ctx.initialized


@pytest.mark.asyncio
async def test_shutdown_errors_are_logged_not_raised(mocker):
    class _Broken(FakeNative):
        async def shutdown(self):
            raise RuntimeError("already down")

    from vcx_agent.core import context as mod

    error = mocker.patch.object(mod.logger, "error")
    ctx = await NativeContext(_Broken(), init_payment=_PaymentSpy()).initialize()

    await ctx.close()

    error.assert_called_once()
    assert "already down" in error.call_args.args[0]
