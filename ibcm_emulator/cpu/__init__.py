# CPU core: codec, ALU, registers
