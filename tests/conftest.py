"""Shared sample project files for the textconv tests."""

import pytest

GUID_A = "8bff0fc0-0ad4-40a4-a4c7-c6a5c1df96b7"
GUID_B = "1c6f3e2a-9b7d-4e1f-8a2b-3c4d5e6f7a8b"
GUID_C = "d2e4f6a8-b0c2-4d4e-9f6a-8b0c2d4e6f8a"

LADDER = """
            <LadderElements>
              <LadderEntity>
                <ElementType>NormalContact</ElementType>
                <Descriptor>%I0.0</Descriptor>
                <Id>0f0e0d0c-0b0a-4909-8807-060504030201</Id>
                <Row>0</Row>
                <Column>0</Column>
              </LadderEntity>
            </LadderElements>"""


def make_smbp(guids=(GUID_A, GUID_B, GUID_C), ladder: bool = True) -> bytes:
    """Build a small Machine Expert Basic project file."""
    a, b, c = guids
    return f"""<?xml version="1.0" encoding="utf-8"?>
<ProjectDescriptor xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
  <ProjectVersion>3.0.0.0</ProjectVersion>
  <Name>Conveyor</Name>
  <HardwareConfiguration>
    <Plc>
      <DigitalInputs>
        <DiscretInput>
          <Address>%I0.0</Address>
          <Symbol>START</Symbol>
        </DiscretInput>
        <DiscretInput>
          <Address>%I0.1</Address>
          <Symbol>STOP</Symbol>
        </DiscretInput>
      </DigitalInputs>
      <DigitalOutputs>
        <DiscretOutput>
          <Address>%Q0.0</Address>
          <Symbol>MOTOR</Symbol>
        </DiscretOutput>
      </DigitalOutputs>
    </Plc>
  </HardwareConfiguration>
  <SoftwareConfiguration>
    <Pous>
      <ProgramOrganizationUnits>
        <Name>Main</Name>
        <SectionNumber>0</SectionNumber>
        <Rungs>
          <RungEntity>{LADDER if ladder else ""}
            <InstructionLines>
              <InstructionLineEntity>
                <InstructionLine>LD    %I0.0</InstructionLine>
                <Comment />
              </InstructionLineEntity>
              <InstructionLineEntity>
                <InstructionLine>ANDN  %I0.1</InstructionLine>
                <Comment>not stopped</Comment>
              </InstructionLineEntity>
              <InstructionLineEntity>
                <InstructionLine>ST    %Q0.0</InstructionLine>
                <Comment />
              </InstructionLineEntity>
            </InstructionLines>
            <Name>Motor control</Name>
            <MainComment>Start the
              conveyor motor</MainComment>
            <Label />
            <IsLadderSelected>true</IsLadderSelected>
          </RungEntity>
          <RungEntity>
            <InstructionLines>
              <InstructionLineEntity><InstructionLine>BLK   %TM0</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>LD    %Q0.0</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>IN</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>OUT_BLK</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>LD    Q</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>ST    %M0</InstructionLine></InstructionLineEntity>
              <InstructionLineEntity><InstructionLine>END_BLK</InstructionLine></InstructionLineEntity>
            </InstructionLines>
            <Name />
            <MainComment />
            <Label />
          </RungEntity>
        </Rungs>
      </ProgramOrganizationUnits>
    </Pous>
    <Grafcet>
      <GrafcetNodeStep><Id>{a}</Id><To>{b}</To></GrafcetNodeStep>
      <GrafcetTransition><Id>{b}</Id><From>{a}</From><To>{c}</To></GrafcetTransition>
      <GrafcetNodeStep><Id>{c}</Id><From>{b}</From></GrafcetNodeStep>
    </Grafcet>
  </SoftwareConfiguration>
</ProjectDescriptor>
""".encode("utf-8")


@pytest.fixture
def smbp_project() -> bytes:
    return make_smbp()


@pytest.fixture
def smbp_factory():
    return make_smbp
