# tests/arch/mos6502/test_mos6502_cpu.py
"""
retro_sid_player.arch.mos6502.cpu の命令実行テスト。
"""
import logging
import pytest

from retro_sid_player.transport.bus import AddressSpace, RecordingSoundDevice
from retro_sid_player.arch.mos6502.cpu import Mos6502Cpu
from retro_sid_player.arch.mos6502.state import B_FLAG, R_FLAG, I_FLAG

# @intent:test_suite 命令ごとの意味論、フラグ更新、スタック、制御フローを検証します。

ORIGIN = 0x0200

@pytest.fixture
def device():
    return RecordingSoundDevice()

@pytest.fixture
def cpu(device):
    return Mos6502Cpu(AddressSpace(device=device))

def load_program(cpu, code, origin=ORIGIN):
    cpu._bus.load(origin, bytes(code))
    cpu.get_state().pc = origin


class TestReset:
    # @intent:test_case_reset リセットでレジスタが標準状態になり、PCはリセットベクタから読まれることを検証します。
    def test_reset_uses_reset_vector(self, cpu):
        cpu._bus.load(0xFFFC, b"\x00\x10")
        state = cpu.get_state()
        state.a, state.x, state.y, state.p, state.sp = 1, 2, 3, 0xFF, 0x10
        cpu.reset()
        state = cpu.get_state()
        assert (state.a, state.x, state.y, state.p, state.sp) == (0, 0, 0, 0, 0xFF)
        assert state.pc == 0x1000

    # @intent:test_case_rebind リセット後も新しい状態オブジェクトに対して命令が実行されることを検証します。
    def test_step_after_reset(self, cpu):
        cpu._bus.load(0xFFFC, b"\x00\x02")
        cpu._bus.load(0x0200, b"\xA9\x7F")
        cpu.reset()
        cpu.step()
        assert cpu.get_state().a == 0x7F


class TestLoadStore:
    def test_lda_immediate(self, cpu):
        load_program(cpu, [0xA9, 0x55])
        snapshot = cpu.step()
        state = cpu.get_state()
        assert state.a == 0x55
        assert not state.flag_z
        assert not state.flag_n
        assert state.pc == 0x0202
        assert snapshot.operation.mnemonic == "LDA"
        assert snapshot.operation.operand_bytes == [0x55]
        assert snapshot.operation.cycle_count == 2

    def test_ldx_zeropage_negative(self, cpu):
        cpu._bus.write(0x0010, 0x80)
        load_program(cpu, [0xA6, 0x10])
        cpu.step()
        state = cpu.get_state()
        assert state.x == 0x80
        assert state.flag_n
        assert state.pc == 0x0202

    def test_lda_zero_sets_z(self, cpu):
        load_program(cpu, [0xA9, 0x00])
        cpu.step()
        assert cpu.get_state().flag_z

    # @intent:test_case_sid ストア命令によるSIDレジスタ窓への書き込みがデバイスに届くことを検証します。
    def test_sta_absolute_reaches_device(self, cpu, device):
        load_program(cpu, [0xA9, 0x0F, 0x8D, 0x18, 0xD4])
        cpu.step()
        snapshot = cpu.step()
        assert device.writes[-1] == (0x18, 0x0F)
        assert snapshot.operation.cycle_count == 4

    def test_ldx_zeropage_y_wraps(self, cpu):
        cpu._bus.write(0x0004, 0x66)
        cpu.get_state().y = 0x05
        load_program(cpu, [0xB6, 0xFF])
        cpu.step()
        assert cpu.get_state().x == 0x66

    def test_transfers(self, cpu):
        state = cpu.get_state()
        state.a = 0x80
        load_program(cpu, [0xAA, 0xA8, 0x9A, 0xBA])  # TAX TAY TXS TSX
        cpu.step()
        cpu.step()
        assert state.x == 0x80 and state.y == 0x80 and state.flag_n
        state.p = 0
        cpu.step()  # TXS はフラグを変更しない
        assert state.sp == 0x80
        assert state.p == 0
        cpu.step()
        assert state.x == 0x80 and state.flag_n


class TestArithmetic:
    def test_adc_binary(self, cpu):
        load_program(cpu, [0x18, 0xA9, 0x10, 0x69, 0x20])
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert state.a == 0x30
        assert not state.flag_c
        assert not state.flag_z

    def test_adc_carry_out(self, cpu):
        load_program(cpu, [0xA9, 0xFF, 0x69, 0x01])
        cpu.step()
        cpu.step()
        state = cpu.get_state()
        assert state.a == 0x00
        assert state.flag_c
        assert state.flag_z

    # @intent:test_case_overflow Vフラグは C xor N の簡略式で計算されることを検証します（ハードウェアとは異なる場合がある）。
    def test_adc_overflow_is_carry_xor_negative(self, cpu):
        load_program(cpu, [0xA9, 0x50, 0x69, 0x50, 0xA9, 0xFF, 0x18, 0x69, 0x01])
        cpu.step()
        cpu.step()
        state = cpu.get_state()
        assert state.a == 0xA0
        assert state.flag_v  # C=0, N=1
        cpu.step()
        cpu.step()
        cpu.step()
        assert state.a == 0x00
        assert state.flag_c
        assert state.flag_v  # C=1, N=0 (実機では0)

    # @intent:test_case_decimal Dフラグは保持されるが、ADCはバイナリで計算されることを検証します。
    def test_adc_ignores_decimal_flag(self, cpu):
        load_program(cpu, [0xF8, 0x18, 0xA9, 0x09, 0x69, 0x01])
        for _ in range(4):
            cpu.step()
        state = cpu.get_state()
        assert state.flag_d
        assert state.a == 0x0A

    def test_sbc_with_borrow_clear(self, cpu):
        load_program(cpu, [0x38, 0xA9, 0x05, 0xE9, 0x03])
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert state.a == 0x02
        assert state.flag_c

    def test_sbc_borrow(self, cpu):
        load_program(cpu, [0x38, 0xA9, 0x03, 0xE9, 0x05])
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert state.a == 0xFE
        assert not state.flag_c
        assert state.flag_n

    @pytest.mark.parametrize("a, operand, c, z, n", [
        (0x10, 0x10, True, True, False),
        (0x10, 0x20, False, False, True),
        (0x20, 0x10, True, False, False),
    ])
    def test_cmp(self, cpu, a, operand, c, z, n):
        cpu.get_state().a = a
        load_program(cpu, [0xC9, operand])
        cpu.step()
        state = cpu.get_state()
        assert (state.flag_c, state.flag_z, state.flag_n) == (c, z, n)
        assert state.a == a

    def test_bit(self, cpu):
        cpu._bus.write(0x0030, 0xC0)
        cpu.get_state().a = 0x01
        load_program(cpu, [0x24, 0x30])
        cpu.step()
        state = cpu.get_state()
        assert state.flag_z and state.flag_v and state.flag_n

    def test_logical(self, cpu):
        load_program(cpu, [0xA9, 0xF0, 0x29, 0x3C, 0x09, 0x01, 0x49, 0xFF])
        cpu.step()
        cpu.step()
        assert cpu.get_state().a == 0x30
        cpu.step()
        assert cpu.get_state().a == 0x31
        cpu.step()
        assert cpu.get_state().a == 0xCE


class TestReadModifyWrite:
    def test_asl_accumulator(self, cpu):
        cpu.get_state().a = 0x81
        load_program(cpu, [0x0A])
        snapshot = cpu.step()
        state = cpu.get_state()
        assert state.a == 0x02
        assert state.flag_c
        assert snapshot.operation.cycle_count == 2
        assert state.pc == 0x0201

    def test_lsr_memory(self, cpu):
        cpu._bus.write(0x0040, 0x01)
        load_program(cpu, [0x46, 0x40])
        snapshot = cpu.step()
        assert cpu._bus.read(0x0040) == 0x00
        assert cpu.get_state().flag_c
        assert cpu.get_state().flag_z
        assert snapshot.operation.cycle_count == 5

    def test_rol_and_ror_through_carry(self, cpu):
        cpu._bus.write(0x1234, 0x80)
        load_program(cpu, [0x38, 0x2E, 0x34, 0x12, 0x6E, 0x34, 0x12])
        cpu.step()
        cpu.step()  # ROL: 0x80 -> 0x01, C=1
        assert cpu._bus.read(0x1234) == 0x01
        assert cpu.get_state().flag_c
        cpu.step()  # ROR: 0x01 -> 0x80, C=1
        assert cpu._bus.read(0x1234) == 0x80
        assert cpu.get_state().flag_c
        assert cpu.get_state().flag_n

    # @intent:test_case_flags INC/DECのZ/Nは8bitに丸めた結果から計算されることを検証します。
    def test_inc_wraps_to_zero(self, cpu):
        cpu._bus.write(0x0010, 0xFF)
        load_program(cpu, [0xE6, 0x10])
        cpu.step()
        assert cpu._bus.read(0x0010) == 0
        assert cpu.get_state().flag_z
        assert not cpu.get_state().flag_n

    def test_dec_absolute_x_writes_same_address(self, cpu):
        cpu._bus.write(0x1105, 0x01)
        cpu.get_state().x = 0x05
        load_program(cpu, [0xDE, 0x00, 0x11])
        snapshot = cpu.step()
        assert cpu._bus.read(0x1105) == 0x00
        assert cpu.get_state().pc == 0x0203
        assert snapshot.operation.cycle_count == 7

    def test_index_increments(self, cpu):
        state = cpu.get_state()
        state.x = 0xFF
        load_program(cpu, [0xE8, 0x88])  # INX, DEY
        cpu.step()
        assert state.x == 0x00 and state.flag_z
        cpu.step()
        assert state.y == 0xFF and state.flag_n


class TestStack:
    def test_pha_pla(self, cpu):
        state = cpu.get_state()
        state.a = 0x42
        load_program(cpu, [0x48, 0xA9, 0x00, 0x68])
        cpu.step()
        assert cpu._bus.read(0x01FF) == 0x42
        assert state.sp == 0xFE
        cpu.step()
        cpu.step()
        assert state.a == 0x42
        assert state.sp == 0xFF

    # @intent:test_case_wrap スタックポインタはページ内でラップし、例外は発生しないことを検証します。
    def test_stack_pointer_wraps(self, cpu):
        state = cpu.get_state()
        state.sp = 0x00
        state.a = 0x99
        load_program(cpu, [0x48, 0x68])
        cpu.step()
        assert cpu._bus.read(0x0100) == 0x99
        assert state.sp == 0xFF
        cpu.step()
        assert state.sp == 0x00
        assert state.a == 0x99

    def test_php_sets_break_and_reserved_plp_clears_break(self, cpu):
        state = cpu.get_state()
        state.p = 0x01
        load_program(cpu, [0x08, 0x28])
        cpu.step()
        assert cpu._bus.read(0x01FF) == 0x01 | B_FLAG | R_FLAG
        cpu.step()
        assert state.p == 0x01 | R_FLAG
        assert not state.flag_b


class TestControlFlow:
    # @intent:test_case_jsr JSRは「次の命令 - 1」を上位→下位の順で積み、RTSはその+1へ戻ることを検証します。
    def test_jsr_rts(self, cpu):
        cpu._bus.load(0x0300, b"\x60")
        load_program(cpu, [0x20, 0x00, 0x03])
        snapshot = cpu.step()
        state = cpu.get_state()
        assert state.pc == 0x0300
        assert cpu._bus.read(0x01FF) == 0x02
        assert cpu._bus.read(0x01FE) == 0x02
        assert snapshot.operation.cycle_count == 6
        cpu.step()
        assert state.pc == 0x0203
        assert state.sp == 0xFF

    def test_jmp_absolute(self, cpu):
        load_program(cpu, [0x4C, 0x34, 0x12])
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x1234
        assert snapshot.operation.cycle_count == 3

    # @intent:test_case_quirk 間接JMPはポインタが$xxFFの時、上位バイトを同じページの$xx00から読むことを検証します。
    def test_jmp_indirect_page_wrap(self, cpu):
        cpu._bus.write(0x10FF, 0x34)
        cpu._bus.write(0x1000, 0x12)
        cpu._bus.write(0x1100, 0x99)
        load_program(cpu, [0x6C, 0xFF, 0x10])
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x1234
        assert snapshot.operation.cycle_count == 5

    # @intent:test_case_brk BRKはBを積んだステータスのみに立て、レジスタ側ではIを立てることを検証します。
    def test_brk_and_rti(self, cpu):
        cpu._bus.load(0xFFFE, b"\x00\x30")
        cpu._bus.load(0x3000, b"\x40")
        state = cpu.get_state()
        state.p = 0x01
        load_program(cpu, [0x00, 0xEA, 0xEA])
        snapshot = cpu.step()
        assert state.pc == 0x3000
        assert state.flag_i
        assert not (state.p & B_FLAG)
        assert snapshot.operation.cycle_count == 7
        assert cpu._bus.read(0x01FD) == 0x01 | B_FLAG | R_FLAG
        cpu.step()  # RTI
        assert state.pc == 0x0202
        assert state.p == 0x01 | R_FLAG
        assert not (state.p & I_FLAG)

    # @intent:test_case_branch 負の変位でページを跨がない分岐は、成立で基本+1、不成立で基本サイクルを消費することを検証します。
    def test_branch_backward_same_page(self, cpu):
        load_program(cpu, [0xD0, 0xFC], origin=0x0210)  # BNE -4
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x020E
        assert snapshot.operation.cycle_count == 3

        cpu.get_state().flag_z = True
        cpu.get_state().pc = 0x0210
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x0212
        assert snapshot.operation.cycle_count == 2

    # @intent:test_case_branch ページを跨いで成立した分岐はさらに+1サイクルかかることを検証します。
    def test_branch_backward_crossing_page(self, cpu):
        load_program(cpu, [0xD0, 0xF0], origin=0x0200)  # BNE -16 -> $01F2
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x01F2
        assert snapshot.operation.cycle_count == 4

    def test_branch_forward_not_taken_consumes_displacement(self, cpu):
        load_program(cpu, [0xB0, 0x10])  # BCS, C=0
        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x0202
        assert snapshot.operation.cycle_count == 2

    def test_flag_instructions(self, cpu):
        state = cpu.get_state()
        load_program(cpu, [0x38, 0x78, 0xF8, 0x18, 0x58, 0xD8, 0xB8])
        for _ in range(3):
            cpu.step()
        assert state.flag_c and state.flag_i and state.flag_d
        state.flag_v = True
        for _ in range(4):
            cpu.step()
        assert state.p == 0


class TestIllegalOpcodes:
    # @intent:test_case_illegal 未定義オペコードは1バイト・2サイクルのNOPとして実行され、カウント・記録されることを検証します。
    def test_illegal_opcode_is_counted_nop(self, cpu, caplog):
        load_program(cpu, [0x02, 0xA9, 0x01])
        with caplog.at_level(logging.DEBUG, logger="retro_sid_player.arch.mos6502.cpu"):
            snapshot = cpu.step()
        assert cpu.get_state().pc == 0x0201
        assert snapshot.operation.illegal
        assert snapshot.operation.mnemonic == "???"
        assert snapshot.operation.cycle_count == 2
        assert snapshot.operation.length == 1
        assert cpu.illegal_opcode_count == 1
        assert "Illegal opcode $02 at $0200" in caplog.text

        cpu.step()
        assert cpu.get_state().a == 0x01
        assert cpu.illegal_opcode_count == 1


class TestDisassemble:
    def test_disassemble_via_cpu(self, cpu):
        cpu._bus.load(0x1000, bytes([0xA9, 0x05, 0x60]))
        assert cpu.disassemble(0x1000, 3) == [
            (0x1000, "A9 05", "LDA #$05"),
            (0x1002, "60", "RTS"),
        ]
